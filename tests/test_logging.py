"""Tests for logging configuration, formatters and audit events."""

import json
import logging

from chat_gateway.config.models import Environment, LogLevel
from chat_gateway.logging import JSONFormatter, StructuredFormatter, get_logging_config
from chat_gateway.services.providers.registry import ProviderHealthRegistry

from .conftest import make_config


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="chat_gateway.services.chat_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Served chat request",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:
    def test_client_libraries_quieted(self) -> None:
        config = get_logging_config(Environment.DEVELOPMENT, LogLevel.DEBUG)

        assert config["loggers"]["chat_gateway"]["level"] == "DEBUG"
        assert config["loggers"]["httpx"]["level"] == logging.WARNING
        assert config["loggers"]["openai"]["level"] == logging.WARNING

    def test_audit_events_kept_at_info(self) -> None:
        config = get_logging_config(Environment.STAGING, LogLevel.ERROR)
        assert config["loggers"]["chat_gateway.audit"]["level"] == logging.INFO

    def test_production_uses_json_and_file(self) -> None:
        config = get_logging_config(Environment.PRODUCTION, LogLevel.INFO, log_file="/tmp/gateway.log")

        assert config["formatters"]["structured"]["()"].endswith("JSONFormatter")
        assert config["handlers"]["file"]["filename"] == "/tmp/gateway.log"
        assert "file" in config["loggers"]["chat_gateway"]["handlers"]

    def test_development_uses_structured_formatter(self) -> None:
        config = get_logging_config(Environment.DEVELOPMENT, LogLevel.INFO)

        assert config["formatters"]["structured"]["()"].endswith("StructuredFormatter")
        assert "file" not in config["handlers"]


class TestFormatters:
    def test_json_formatter_includes_extra_fields(self) -> None:
        output = JSONFormatter().format(make_record(provider="groq", duration_ms=12.5))

        entry = json.loads(output)
        assert entry["message"] == "Served chat request"
        assert entry["level"] == "INFO"
        assert entry["provider"] == "groq"
        assert entry["duration_ms"] == 12.5

    def test_structured_formatter_appends_extra_fields(self) -> None:
        output = StructuredFormatter().format(make_record(provider="groq"))

        assert "Served chat request" in output
        assert output.endswith("provider=groq")


class TestAuditEvents:
    def test_provider_transitions_audited(self, recovery_config, caplog) -> None:
        registry = ProviderHealthRegistry([make_config("groq", 1, max_retries=1)], recovery_config)

        with caplog.at_level(logging.INFO, logger="chat_gateway.audit"):
            registry.mark_unhealthy("groq", "rate limited")
            registry.mark_healthy("groq")

        events = [record.event for record in caplog.records if hasattr(record, "event")]
        assert events == ["provider_unhealthy", "provider_recovered"]
        unhealthy = next(record for record in caplog.records if getattr(record, "event", None) == "provider_unhealthy")
        assert unhealthy.levelno == logging.WARNING
        assert unhealthy.provider == "groq"
