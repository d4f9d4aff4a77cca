"""
Logging setup for the ledger service.

Production writes one JSON object per line; development and tests write
a short readable line. Both carry the award and request context that the
services pass through ``extra=``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Context set by the award services (award_id, actor, office, status),
# the request timer (method, path, status, duration_ms, request_id, user_id)
# and the Hub gateway (status_code, error, duration_ms).
CONTEXT_FIELDS = (
    "award_id",
    "actor",
    "office",
    "status",
    "request_id",
    "user_id",
    "method",
    "path",
    "duration_ms",
    "status_code",
    "error",
)

# Subset shown on readable lines; the message already names method and path.
_READABLE_FIELDS = ("award_id", "actor", "office", "request_id")


def record_context(record: logging.LogRecord, fields=CONTEXT_FIELDS) -> dict:
    return {key: getattr(record, key) for key in fields if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now().strftime("%H:%M:%S")
        context = " ".join(f"{k}={v}" for k, v in record_context(record, _READABLE_FIELDS).items())
        line = f"{ts} {record.levelname:<8} {record.name}: {record.getMessage()}"
        if context:
            line = f"{line} [{context}]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler with the formatter for this environment.

    LOG_LEVEL comes from app config, then the environment; it defaults to
    INFO in production and DEBUG elsewhere.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    root = logging.getLogger()
    # Repeated create_app calls in tests must not stack handlers.
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("urllib3", "werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    app.logger.setLevel(level)
