import json
import logging
import os
import sys
from datetime import datetime, timezone


ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./astra.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PROJECT_NAME = os.getenv("FRONTEND_PROJECT_NAME", "Astra")

# Optimistic move confirmation window
SETTLE_TIMEOUT_SECONDS = float(os.getenv("SETTLE_TIMEOUT_SECONDS", "5"))
# Market and reminder panels poll instead of subscribing
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "5"))

DEFAULT_BOARD_COLUMNS = ["To Do", "In Progress", "In Review", "Done"]

_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message"}


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line, including `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": ENVIRONMENT,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_logger() -> logging.Logger:
    log = logging.getLogger("astra")
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        log.addHandler(handler)
    log.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    log.propagate = False
    return log


logger = _build_logger()
