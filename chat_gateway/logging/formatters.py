"""Custom logging formatters for structured and JSON logging."""

import json
import logging
import traceback
from datetime import datetime
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through ``extra``.
STANDARD_FIELDS = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'message', 'exc_info',
    'exc_text', 'stack_info', 'asctime', 'taskName',
})


def get_extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Extract extra fields from log record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in STANDARD_FIELDS
    }


class StructuredFormatter(logging.Formatter):
    """Structured formatter for human-readable logs in development."""

    def __init__(self):
        super().__init__(fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured information."""
        # Exceptions are appended below, after the extra fields
        exc_info, exc_text = record.exc_info, record.exc_text
        record.exc_info, record.exc_text = None, None
        try:
            formatted = super().format(record)
        finally:
            record.exc_info, record.exc_text = exc_info, exc_text

        extra_fields = get_extra_fields(record)
        if extra_fields:
            extra_str = " | ".join([f"{k}={v}" for k, v in extra_fields.items()])
            formatted += f" | {extra_str}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        extra_fields = get_extra_fields(record)
        if extra_fields:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)
