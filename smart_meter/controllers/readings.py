from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from smart_meter.dependencies import get_reading_store
from smart_meter.managers.reading_manager import Reading, ReadingStore

router = APIRouter(prefix="/readings")


class ElectricityReading(BaseModel):
    time: Optional[datetime] = None
    reading: float


class MeterReadings(BaseModel):
    smartMeterId: str = Field(min_length=1)
    electricityReadings: List[ElectricityReading] = Field(default_factory=list)


@router.post("/store")
async def store_readings(
    body: MeterReadings,
    store: ReadingStore = Depends(get_reading_store),
):
    result = store.store_readings(
        body.smartMeterId,
        [Reading(r.time, r.reading) for r in body.electricityReadings],
    )
    if not result.accepted:
        return JSONResponse({"status": result.status.value, "reason": result.reason}, status_code=400)
    return JSONResponse({"status": result.status.value})


@router.get("/read/{smartMeterId}")
async def read_readings(
    smartMeterId: str,
    store: ReadingStore = Depends(get_reading_store),
):
    readings = store.get_readings(smartMeterId)
    return JSONResponse(
        [{"time": r.timestamp.isoformat(), "reading": r.value} for r in readings]
    )
