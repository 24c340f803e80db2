"""Logging setup: plain text or JSON lines."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import orjson

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_RESERVED_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter; ``extra`` fields (topic, sensor_id, ...) become keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_ATTRS or key.startswith("_"):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info:
            payload["stack"] = record.stack_info

        return orjson.dumps(payload, default=repr).decode()


def parse_level(level: str) -> int:
    """Map a level name (``debug``, ``info``, ``warn``...) to its number.

    Raises:
        ValueError: unknown level name.
    """
    name = (level or "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"not a valid logging level: {level!r}")
    return value


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Configure the root logger and return it.

    An unknown level is reported and replaced by INFO.
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    try:
        root.setLevel(parse_level(level))
    except ValueError as e:
        root.setLevel(logging.INFO)
        root.warning("Invalid log level, using info: %s", e)

    return root
