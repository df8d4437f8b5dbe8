import calendar
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DAY_NAMES = [name.lower() for name in calendar.day_name]


class CatalogError(ValueError):
    """Raised when the price plan catalog file is missing or inconsistent."""


def parse_day_of_week(value: Any) -> int:
    """Return the ``datetime.weekday()`` number (Monday is 0) for an English day name.

    Numeric days are not accepted.
    """
    if isinstance(value, str) and value.strip().lower() in DAY_NAMES:
        return DAY_NAMES.index(value.strip().lower())
    raise CatalogError(f"Unrecognised day of week {value!r}")


def _number(data: Dict[str, Any], key: str, owner: str) -> float:
    try:
        value = float(data[key])
    except (KeyError, TypeError, ValueError):
        raise CatalogError(f"{owner} needs a numeric {key!r}") from None
    if value < 0:
        raise CatalogError(f"{owner} has a negative {key!r}: {value}")
    return value


@dataclass(frozen=True)
class PeakTimeMultiplier:
    day_of_week: int
    multiplier: float

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "PeakTimeMultiplier":
        multiplier = _number(data, "multiplier", "Peak time multiplier")
        return cls(parse_day_of_week(data.get("dayOfWeek")), multiplier)


@dataclass(frozen=True)
class PricePlan:
    supplier: str
    unit_rate: float
    peak_time_multipliers: Tuple[PeakTimeMultiplier, ...] = ()

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "PricePlan":
        supplier = data.get("supplier")
        if not supplier:
            raise CatalogError("Price plan is missing a supplier")
        unit_rate = _number(data, "unitRate", f"Price plan {supplier}")
        multipliers = tuple(
            PeakTimeMultiplier.from_config(m) for m in data.get("peakTimeMultipliers") or []
        )
        days = [m.day_of_week for m in multipliers]
        if len(days) != len(set(days)):
            raise CatalogError(f"Price plan {supplier} repeats a day of week in its multipliers")
        return cls(supplier, unit_rate, multipliers)

    def price_at(self, timestamp: datetime) -> float:
        """Unit rate at ``timestamp``; the first multiplier for that weekday applies."""
        weekday = timestamp.weekday()
        for peak in self.peak_time_multipliers:
            if peak.day_of_week == weekday:
                return peak.multiplier * self.unit_rate
        return self.unit_rate


@dataclass(frozen=True)
class PricePlanCatalog:
    plans: Tuple[PricePlan, ...]
    accounts: Dict[str, str] = field(default_factory=dict)

    def plan_for_meter(self, meter_id: str) -> Optional[str]:
        """Supplier assigned to the meter, or None when the meter has no account."""
        return self.accounts.get(meter_id)

    def meter_ids(self) -> List[str]:
        return list(self.accounts)


def build_catalog(data: Dict[str, Any]) -> PricePlanCatalog:
    plans = tuple(PricePlan.from_config(p) for p in data.get("pricePlans", []))
    suppliers = [p.supplier for p in plans]
    duplicates = sorted({s for s in suppliers if suppliers.count(s) > 1})
    if duplicates:
        raise CatalogError(f"Duplicate suppliers in catalog: {', '.join(duplicates)}")

    accounts = dict(data.get("accounts", {}))
    for meter_id, supplier in accounts.items():
        if not meter_id:
            raise CatalogError("Account with an empty meter id")
        if supplier not in suppliers:
            raise CatalogError(f"Meter {meter_id} is assigned to unknown supplier {supplier!r}")
    return PricePlanCatalog(plans, accounts)


def load_catalog(path: "str | os.PathLike[str]") -> PricePlanCatalog:
    if not os.path.exists(path):
        raise CatalogError(f"Price plan catalog {path} not found")
    with open(path, "r") as f:
        catalog = build_catalog(json.load(f))
    logger.info(
        "Loaded %d price plans and %d accounts from %s",
        len(catalog.plans),
        len(catalog.accounts),
        path,
    )
    return catalog
