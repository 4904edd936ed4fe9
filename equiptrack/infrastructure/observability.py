"""Structured Logging — JSON formatter and setup for the ledger service.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Ledger context (day, category, item_id, photo_key, operation, ...) is
      surfaced as top-level keys when passed via `extra`
    - setup_logging is idempotent: a second lifespan replaces, not stacks, handlers

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - aiosqlite debug chatter capped at WARNING; it logs every cursor call
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "day", "category", "item_id", "photo_key", "error_code", "path",
    "operation", "access_mode", "orphaned", "history_depth",
)
_NOISY_LOGGERS = ("aiosqlite", "sqlalchemy.engine")
_HANDLER_NAME = "equiptrack"


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure root logging. Safe to call more than once."""
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
