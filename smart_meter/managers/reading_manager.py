import logging
import math
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

EMPTY_BATCH = "empty batch"
MISSING_TIMESTAMP = "missing timestamp"
DUPLICATE_TIMESTAMP = "duplicate timestamp in batch"
INVALID_TIMESTAMP = "invalid timestamp"
INVALID_VALUE = "invalid reading value"


@dataclass(frozen=True)
class Reading:
    timestamp: Optional[datetime]
    value: float


class StoreStatus(str, Enum):
    ACCEPTED_NEW = "accepted-new"
    ACCEPTED_UPDATED = "accepted-updated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class StoreResult:
    status: StoreStatus
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status is not StoreStatus.REJECTED

    @classmethod
    def rejected(cls, reason: str) -> "StoreResult":
        return cls(StoreStatus.REJECTED, reason)


def normalize_timestamp(timestamp: Optional[datetime]) -> Optional[datetime]:
    """Return a naive UTC timestamp, or None when the timestamp is missing or the default.

    Raises OverflowError for aware timestamps that fall outside the datetime range in UTC.
    """
    if timestamp is None or timestamp.replace(tzinfo=None) == datetime.min:
        return None
    if timestamp.tzinfo is not None:
        return timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp


def validate_batch(batch: List[Reading]) -> Optional[str]:
    """Reason the batch can never be stored, checked before touching any series."""
    if not batch:
        return EMPTY_BATCH
    if any(r.timestamp is None for r in batch):
        return MISSING_TIMESTAMP
    if len({r.timestamp for r in batch}) != len(batch):
        return DUPLICATE_TIMESTAMP
    if not all(math.isfinite(r.value) for r in batch):
        return INVALID_VALUE
    return None


def merge_readings(existing: List[Reading], batch: List[Reading]) -> List[Reading]:
    """Overlay ``batch`` on ``existing`` by timestamp and return the merged series sorted by time."""
    by_time: Dict[datetime, Reading] = {r.timestamp: r for r in existing}
    for reading in batch:
        by_time[reading.timestamp] = reading
    return sorted(by_time.values(), key=lambda r: r.timestamp)


def find_decrease(series: List[Reading]) -> Optional[Reading]:
    """First reading whose successor has a lower value, or None if the series never decreases."""
    for current, following in zip(series, series[1:]):
        if current.value > following.value:
            return current
    return None


class ReadingStore:
    """In-memory reading series keyed by meter id.

    Every meter has its own lock so merges into one series run one at a time
    while other meters proceed. A merge builds a new list and swaps it in, so
    readers always copy a complete series.
    """

    def __init__(self) -> None:
        self._series: Dict[str, List[Reading]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, meter_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(meter_id, threading.Lock())

    def store_readings(self, meter_id: str, readings: Iterable[Reading]) -> StoreResult:
        try:
            batch = [Reading(normalize_timestamp(r.timestamp), r.value) for r in readings]
        except OverflowError:
            logger.warning("Rejected readings for %s: %s", meter_id, INVALID_TIMESTAMP)
            return StoreResult.rejected(INVALID_TIMESTAMP)
        reason = validate_batch(batch)
        if reason:
            logger.warning("Rejected readings for %s: %s", meter_id, reason)
            return StoreResult.rejected(reason)

        with self._lock_for(meter_id):
            existing = self._series.get(meter_id, [])
            merged = merge_readings(existing, batch)
            offending = find_decrease(merged)
            if offending is not None:
                reason = f"non-monotonic value at time {offending.timestamp.isoformat()}"
                logger.warning("Rejected readings for %s: %s", meter_id, reason)
                return StoreResult.rejected(reason)

            known = {r.timestamp for r in existing}
            updated = any(r.timestamp in known for r in batch)
            self._series[meter_id] = merged

        logger.info(
            "Stored %d readings for %s (%s), series now holds %d",
            len(batch),
            meter_id,
            "updated" if updated else "new",
            len(merged),
        )
        return StoreResult(StoreStatus.ACCEPTED_UPDATED if updated else StoreStatus.ACCEPTED_NEW)

    def get_readings(self, meter_id: str) -> List[Reading]:
        """Sorted copy of the meter's series; empty for a meter that was never stored."""
        return list(self._series.get(meter_id, []))

    def has_meter(self, meter_id: str) -> bool:
        return meter_id in self._series


def generate_readings(
    count: int,
    start: Optional[datetime] = None,
    interval: timedelta = timedelta(seconds=10),
    rng: Optional[random.Random] = None,
) -> List[Reading]:
    """Sample cumulative readings, ``interval`` apart, each a random step above the last."""
    if count < 0:
        raise ValueError("count must not be negative")
    rng = rng or random.Random()
    start = start or datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
    readings: List[Reading] = []
    value = 0.0
    for i in range(count):
        value += rng.random()
        readings.append(Reading(start + i * interval, round(value, 4)))
    return readings


def seed_readings(
    store: ReadingStore,
    meter_ids: Iterable[str],
    count: int = 20,
    interval: timedelta = timedelta(seconds=10),
) -> None:
    if count == 0:
        return
    for meter_id in meter_ids:
        result = store.store_readings(meter_id, generate_readings(count, interval=interval))
        if not result.accepted:
            logger.warning("Could not seed readings for %s: %s", meter_id, result.reason)
