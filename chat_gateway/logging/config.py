"""Logging configuration and setup."""

import logging
import logging.config
import os
import sys
from typing import Any, Dict, Optional

from chat_gateway.config.models import Environment, LogLevel

ROOT_LOGGER = "chat_gateway"
AUDIT_LOGGER = f"{ROOT_LOGGER}.audit"

# Client libraries used by the adapters log every request at DEBUG/INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def _logger_entry(level: Any) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def get_logging_config(
    environment: Environment,
    log_level: LogLevel,
    enable_json: bool = False,
    log_file: str = "logs/chat_gateway.log"
) -> Dict[str, Any]:
    """Get logging configuration based on environment and settings."""

    # Choose formatter based on environment and preference
    if environment == Environment.PRODUCTION or enable_json:
        formatter_class = "chat_gateway.logging.formatters.JSONFormatter"
    else:
        formatter_class = "chat_gateway.logging.formatters.StructuredFormatter"

    level = log_level.value
    numeric_level = logging.getLevelName(level)

    loggers = {
        ROOT_LOGGER: _logger_entry(level),
        # Provider health transitions stay visible when the rest is quieted
        AUDIT_LOGGER: _logger_entry(min(numeric_level, logging.INFO)),
        "uvicorn": _logger_entry(level),
        "uvicorn.access": _logger_entry(level),
    }
    for name in QUIET_LOGGERS:
        loggers[name] = _logger_entry(max(numeric_level, logging.WARNING))

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": formatter_class,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "structured",
                "stream": sys.stdout,
            },
        },
        "loggers": loggers,
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    }

    # Add file logging for production
    if environment == Environment.PRODUCTION:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "structured",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }

        for logger_config in loggers.values():
            logger_config["handlers"].append("file")
        config["root"]["handlers"].append("file")

    return config


def setup_logging(
    environment: Environment = Environment.DEVELOPMENT,
    log_level: LogLevel = LogLevel.INFO,
    enable_json: bool = False,
    log_file: str = "logs/chat_gateway.log"
) -> None:
    """Install the logging configuration for the gateway process."""

    if environment == Environment.PRODUCTION:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)

    logging.config.dictConfig(get_logging_config(environment, log_level, enable_json, log_file))

    get_logger("logging").info(
        "Logging configured",
        extra={
            "environment": environment.value,
            "log_level": log_level.value,
            "json_format": enable_json,
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the gateway's logger namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_performance(
    logger: logging.Logger,
    operation: str,
    duration: float,
    extra: Optional[Dict[str, Any]] = None
) -> None:
    """Log how long an operation took, ``duration`` in seconds."""
    log_extra = dict(extra or {})
    log_extra.update({
        "operation": operation,
        "duration_ms": round(duration * 1000, 2),
        "performance": True,
    })

    logger.info(f"Operation completed: {operation}", extra=log_extra)


def log_exception(
    logger: logging.Logger,
    message: str,
    exc_info: Optional[Exception] = None,
    extra: Optional[Dict[str, Any]] = None
) -> None:
    """Log an exception with its type and message as structured fields."""
    log_extra = dict(extra or {})

    if exc_info:
        log_extra.update({
            "exception_type": type(exc_info).__name__,
            "exception_message": str(exc_info),
        })

    logger.error(message, extra=log_extra, exc_info=exc_info)
