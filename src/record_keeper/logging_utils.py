from __future__ import annotations

import json
import logging
import sys
from typing import IO, Any, Optional

# Fields the store, snapshot and feed code pass via `extra=`.
_EXTRA_KEYS = ("path", "url", "symbol", "key", "count", "error", "deadline_seconds")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stamped with the service variant when known."""

    def __init__(self, *, service: Optional[str] = None) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        service = getattr(record, "service", None) or self._service
        if service:
            payload["service"] = service
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    level: str,
    *,
    service: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    # Feed requests only at DEBUG; uvicorn's own handlers are not installed,
    # so its records reach the root handler below.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter(service=service))
    root.addHandler(handler)
