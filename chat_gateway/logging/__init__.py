"""Logging module for structured logging and monitoring."""

from .config import setup_logging, get_logger, get_logging_config, log_exception, log_performance
from .middleware import LoggingMiddleware, ErrorLoggingMiddleware
from .formatters import StructuredFormatter, JSONFormatter
from .utils import create_audit_logger, AuditLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "get_logging_config",
    "log_exception",
    "log_performance",
    "LoggingMiddleware",
    "ErrorLoggingMiddleware",
    "StructuredFormatter",
    "JSONFormatter",
    "create_audit_logger",
    "AuditLogger",
]
