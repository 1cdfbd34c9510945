"""
FormLogic Logging Setup

Structured JSON logging for the API and CLI. Library modules only create
module-level loggers; handlers are installed by configure_logging().
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import Settings, get_settings

# Extra attributes copied into JSON log entries when present on a record
_EXTRA_FIELDS = (
    "form_id",
    "field_name",
    "request_id",
    "error_code",
    "state_hash_short",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Attach a stream handler to the "formlogic" logger.

    Safe to call more than once; the handler is replaced, not duplicated.
    """
    settings = settings or get_settings()
    logger = logging.getLogger("formlogic")
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for existing in list(logger.handlers):
        if getattr(existing, "_formlogic_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    if settings.log_format == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())
    handler._formlogic_handler = True
    logger.addHandler(handler)
    return logger
