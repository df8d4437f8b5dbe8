import logging
from typing import Dict, List, Optional, Tuple

from smart_meter.configs.price_plans import PricePlan, PricePlanCatalog
from smart_meter.managers.reading_manager import Reading, ReadingStore

logger = logging.getLogger(__name__)


class InconsistentReadingsError(ValueError):
    """A series handed to the calculator has a reading lower than the one before it."""


def calculate_cost(readings: List[Reading], plan: PricePlan) -> float:
    """Total cost of the consumption between consecutive readings under ``plan``.

    Each interval is charged at the plan's price at the interval's start time.
    Fewer than two readings means there is no interval, so the cost is zero.
    """
    ordered = sorted(readings, key=lambda r: r.timestamp)
    total = 0.0
    for i, (start, end) in enumerate(zip(ordered, ordered[1:]), start=1):
        consumed = end.value - start.value
        if consumed < 0:
            raise InconsistentReadingsError(
                f"Meter reading {i} at {end.timestamp.isoformat()} is lower than the previous one"
            )
        total += plan.price_at(start.timestamp) * consumed
    return total


def cost_for_each_plan(
    meter_id: str, store: ReadingStore, catalog: PricePlanCatalog
) -> Optional[Dict[str, float]]:
    """Cost of the meter's readings under every plan, keyed by supplier in catalog order.

    Returns None when the meter has no account or no stored readings.
    """
    if catalog.plan_for_meter(meter_id) is None or not store.has_meter(meter_id):
        return None
    readings = store.get_readings(meter_id)
    costs: Dict[str, float] = {}
    for plan in catalog.plans:
        try:
            costs[plan.supplier] = calculate_cost(readings, plan)
        except InconsistentReadingsError:
            logger.error("Cost calculation failed for %s under %s", meter_id, plan.supplier)
            raise
    logger.debug("Costs for %s: %s", meter_id, costs)
    return costs


def recommend_cheapest(
    meter_id: str,
    store: ReadingStore,
    catalog: PricePlanCatalog,
    limit: Optional[int] = None,
) -> Optional[List[Tuple[str, float]]]:
    """Plans ordered cheapest first, ties kept in catalog order, cut to ``limit`` if given."""
    if limit is not None and limit < 0:
        raise ValueError("limit must not be negative")
    costs = cost_for_each_plan(meter_id, store, catalog)
    if costs is None:
        return None
    ranking = sorted(costs.items(), key=lambda kv: kv[1])
    if limit is not None:
        ranking = ranking[:limit]
    return ranking
