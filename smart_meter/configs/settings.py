import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SMART_METER_"
DEFAULT_PRICE_PLANS_PATH = Path(__file__).with_name("price_plans.json")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    price_plans_path: Path = DEFAULT_PRICE_PLANS_PATH
    log_level: str = "INFO"
    log_json: bool = False
    seed_readings: bool = True
    seed_reading_count: int = 20
    seed_interval_seconds: int = 10


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX + name} must be a boolean, got {raw!r}")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX + name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{ENV_PREFIX + name} must not be negative, got {value}")
    return value


def load_settings() -> Settings:
    """Build settings from the environment, reading ``.env`` first if present."""
    load_dotenv()
    path = os.getenv(ENV_PREFIX + "PRICE_PLANS_PATH")
    return Settings(
        price_plans_path=Path(path) if path else DEFAULT_PRICE_PLANS_PATH,
        log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        log_json=_get_bool("LOG_JSON", False),
        seed_readings=_get_bool("SEED_READINGS", True),
        seed_reading_count=_get_int("SEED_READING_COUNT", 20),
        seed_interval_seconds=_get_int("SEED_INTERVAL_SECONDS", 10),
    )
