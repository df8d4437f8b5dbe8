import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smart_meter.configs.logging import configure_logging
from smart_meter.controllers import price_plans, readings
from smart_meter.dependencies import get_settings
from smart_meter.managers.price_plan_manager import InconsistentReadingsError

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)

app = FastAPI(title="Smart Meter Price Plans")
app.include_router(readings.router)
app.include_router(price_plans.router)


@app.exception_handler(InconsistentReadingsError)
async def inconsistent_readings(request: Request, exc: InconsistentReadingsError):
    logger.error("Cost calculation failed on %s: %s", request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=500)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("smart_meter.main:app", host="0.0.0.0", port=8000)
