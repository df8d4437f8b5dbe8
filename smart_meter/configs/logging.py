"""
Logging setup for the smart meter service.

``configure_logging`` is called once when the FastAPI app is built. Library
modules only ever use ``logging.getLogger(__name__)``.
"""

import json
import logging
import sys
from datetime import datetime, timezone

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class JsonFormatter(logging.Formatter):
    """One JSON object per line with ``ts``, ``level``, ``logger`` and ``msg``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)

    formatter: logging.Formatter
    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(resolved)
    console.setFormatter(formatter)

    logging.basicConfig(level=resolved, handlers=[console], force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)
