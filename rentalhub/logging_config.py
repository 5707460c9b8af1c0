# JSON logging to stdout; call configure_logging() once at process start.
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# Structured fields passed through `extra=` by the core loggers
_EXTRA_FIELDS = (
    "user_id",
    "role",
    "action",
    "resource",
    "resource_id",
    "property_id",
    "tenant_id",
    "lease_id",
    "maintenance_id",
    "payment_id",
    "status",
    "path",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, known extras and exc_info."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in _EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # Replace handlers so uvicorn --reload does not stack them
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
