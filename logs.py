"""JSON-lines logging to stderr."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

DEFAULT_LOG_LEVEL = "INFO"

_configured: set[str] = set()


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def is_valid_level(level: str) -> bool:
    """True if *level* names a standard logging level (case-insensitive)."""
    return isinstance(logging.getLevelName(level.strip().upper()), int)


def get_logger(name: str) -> logging.Logger:
    """Return *name*'s logger, attaching the JSON stderr handler on first use.

    The initial level comes from ZENTUBE_LOG_LEVEL (default INFO); set_level()
    overrides it once settings are loaded.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    level = os.environ.get("ZENTUBE_LOG_LEVEL", "").strip().upper()
    logger.setLevel(level if level and is_valid_level(level) else DEFAULT_LOG_LEVEL)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    _configured.add(name)
    return logger


def set_level(level: str) -> None:
    """Apply *level* to every logger created through get_logger()."""
    if not is_valid_level(level):
        raise ValueError(f"unknown log level: {level!r}")
    for name in _configured:
        logging.getLogger(name).setLevel(level.strip().upper())
