"""
JSON logging for deptquiz.

Each log line is one JSON object on stdout carrying the channel it came
from (http, db, grading, attempts, analytics), the id of the HTTP request
being served and whatever quiz/student/question context the caller passes.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

# Set by the request middleware, read by the formatter
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ROOT = "deptquiz"
CHANNELS = ["http", "db", "grading", "attempts", "analytics"]


def _channel_of(logger_name: str) -> str:
    prefix = ROOT + "."
    return logger_name[len(prefix):] if logger_name.startswith(prefix) else logger_name


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as {timestamp, level, channel, message, context, extra}.

    ``context`` always holds the current request_id; ``extra`` is left out
    when there is nothing to report.
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "channel": getattr(record, "channel", None) or _channel_of(record.name),
            "message": record.getMessage(),
            "context": {"request_id": request_id_var.get(),
                        **(getattr(record, "context", None) or {})},
        }
        extra = getattr(record, "extra_data", None)
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Install the JSON handler on the root logger and level every channel."""
    numeric = getattr(logging, level, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        get_logger(channel).setLevel(numeric)
    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None, exc_info=None):
    """
    Log ``message`` on ``logger`` with structured fields.

    Args:
        logger: a channel logger from get_logger()
        level: level name, e.g. "INFO" or "WARNING"
        context: identifiers of what the entry is about (quiz_id, student_id, ...)
        extra_data: measurements and details (duration_ms, score, ...)
        exc_info: passed through to Logger.log
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        exc_info=exc_info,
        extra={"context": context or {}, "extra_data": extra_data or {},
               "channel": _channel_of(logger.name)}
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
