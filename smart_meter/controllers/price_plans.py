from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from smart_meter.configs.price_plans import PricePlanCatalog
from smart_meter.dependencies import get_catalog, get_reading_store
from smart_meter.managers.price_plan_manager import cost_for_each_plan, recommend_cheapest
from smart_meter.managers.reading_manager import ReadingStore

router = APIRouter(prefix="/price-plans")


def _not_found(smartMeterId: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Smart Meter ID ({smartMeterId}) not found")


@router.get("/compare-all/{smartMeterId}")
async def compare_all(
    smartMeterId: str,
    store: ReadingStore = Depends(get_reading_store),
    catalog: PricePlanCatalog = Depends(get_catalog),
):
    costs = cost_for_each_plan(smartMeterId, store, catalog)
    if costs is None:
        raise _not_found(smartMeterId)
    return JSONResponse(
        {
            "pricePlanId": catalog.plan_for_meter(smartMeterId),
            "pricePlanComparisons": costs,
        }
    )


@router.get("/recommend/{smartMeterId}")
async def recommend(
    smartMeterId: str,
    limit: Optional[int] = Query(None, ge=0),
    store: ReadingStore = Depends(get_reading_store),
    catalog: PricePlanCatalog = Depends(get_catalog),
):
    ranking = recommend_cheapest(smartMeterId, store, catalog, limit)
    if ranking is None:
        raise _not_found(smartMeterId)
    return JSONResponse([{"supplier": supplier, "cost": cost} for supplier, cost in ranking])
