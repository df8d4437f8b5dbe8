"""
Process-wide singletons handed to the routers through ``Depends``.

Tests swap them out with ``app.dependency_overrides``.
"""

from datetime import timedelta
from functools import lru_cache

from smart_meter.configs.price_plans import PricePlanCatalog, load_catalog
from smart_meter.configs.settings import Settings, load_settings
from smart_meter.managers.reading_manager import ReadingStore, seed_readings


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=None)
def get_catalog() -> PricePlanCatalog:
    return load_catalog(get_settings().price_plans_path)


@lru_cache(maxsize=None)
def get_reading_store() -> ReadingStore:
    settings = get_settings()
    store = ReadingStore()
    if settings.seed_readings:
        seed_readings(
            store,
            get_catalog().meter_ids(),
            count=settings.seed_reading_count,
            interval=timedelta(seconds=settings.seed_interval_seconds),
        )
    return store
