"""Logging helpers for console output."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

# Environment variable selecting the default log level
LOG_LEVEL_ENV = "POSTIER_LOG"

_RESERVED_LOG_RECORD_KEYS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "message",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


def _safe_json_value(value: object) -> Any:
    """Coerce a value to something JSON-serializable."""
    try:
        json.dumps(value)
        return value
    except TypeError:
        return str(value)


class JsonLogFormatter(logging.Formatter):
    """Formatter that emits one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_KEYS or key.startswith("_"):
                continue
            payload[key] = _safe_json_value(value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def resolve_level(level: str | None = None) -> int:
    """Map a level name to a logging level.

    Falls back to the POSTIER_LOG environment variable, then WARNING.
    Unknown names resolve to WARNING.
    """
    name = level or os.environ.get(LOG_LEVEL_ENV) or "WARNING"
    value = getattr(logging, name.strip().upper(), None)
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(*, level: str | None = None, json_logs: bool = False) -> None:
    """Configure stderr logging for a CLI run.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to $POSTIER_LOG or WARNING.
        json_logs: Emit JSON lines instead of human-readable records.
    """
    resolved = resolve_level(level)

    handler = logging.StreamHandler()
    handler.setLevel(resolved)

    if json_logs:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ),
        )

    logging.basicConfig(level=resolved, handlers=[handler], force=True)

    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
