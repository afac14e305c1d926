"""Tests for configuration loading and validation."""

import os

import pytest

from chat_gateway.config import (
    AppConfig,
    CacheConfig,
    ConfigFactory,
    Environment,
    LogLevel,
    ProvidersConfig,
    RecoveryConfig,
    load_settings,
    validate_config,
    validate_startup_config,
)
from chat_gateway.config.models import APIConfig
from chat_gateway.models.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ENVIRONMENT", "DEBUG", "GROQ_API_KEY", "OLLAMA_ENABLED", "CORS_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_env_aliases(self, clean_env) -> None:
        clean_env.setenv("GROQ_API_KEY", "gsk_0123456789abcdef")
        clean_env.setenv("CACHE_MAX_ENTRIES", "50")
        clean_env.setenv("RECOVERY_SHORT_DELAY", "5")
        clean_env.setenv("OLLAMA_ENABLED", "false")

        config = load_settings().to_app_config()

        assert config.providers.groq_api_key == "gsk_0123456789abcdef"
        assert config.providers.ollama_enabled is False
        assert config.cache.max_entries == 50
        assert config.recovery.short_delay == 5.0

    def test_ollama_enablement_unset_by_default(self, clean_env) -> None:
        assert load_settings().to_app_config().providers.ollama_enabled is None

    def test_cors_origins_parsed(self, clean_env) -> None:
        clean_env.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")

        config = load_settings().to_app_config()

        assert config.api.cors_origins == ["https://a.example.com", "https://b.example.com"]

    def test_debug_accepts_truthy_strings(self) -> None:
        assert AppConfig(debug="yes").debug is True
        assert AppConfig(debug="off").debug is False


class TestValidation:
    def test_defaults_are_valid(self) -> None:
        assert validate_config(AppConfig()) == []

    def test_short_api_key(self) -> None:
        config = AppConfig(providers=ProvidersConfig(cohere_api_key="abc"))
        errors = validate_config(config)
        assert any("COHERE_API_KEY" in error for error in errors)

    def test_blank_api_key_means_disabled(self) -> None:
        assert validate_config(AppConfig(providers=ProvidersConfig(groq_api_key=""))) == []

    def test_bad_ollama_url(self) -> None:
        config = AppConfig(providers=ProvidersConfig(ollama_url="localhost:11434"))
        assert any("OLLAMA_URL" in error for error in validate_config(config))

    def test_recovery_delays_ordered(self) -> None:
        config = AppConfig(recovery=RecoveryConfig(short_delay=600, long_delay=300))
        assert any("RECOVERY_SHORT_DELAY" in error for error in validate_config(config))

    def test_cache_bounds(self) -> None:
        config = AppConfig(cache=CacheConfig(min_message_length=50, max_message_length=10))
        assert any("CACHE_MIN_MESSAGE_LENGTH" in error for error in validate_config(config))

    def test_production_requirements(self) -> None:
        config = AppConfig(
            environment=Environment.PRODUCTION,
            debug=True,
            api=APIConfig(log_level=LogLevel.DEBUG),
        )

        errors = validate_config(config)

        assert len(errors) == 3

    def test_startup_validation_raises_value_error(self, clean_env) -> None:
        clean_env.setenv("GROQ_API_KEY", "short")

        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            validate_startup_config()


class TestConfigFactory:
    def test_testing_overrides(self, clean_env) -> None:
        config = ConfigFactory.create_config(Environment.TESTING)

        assert config.environment == Environment.TESTING
        assert config.api.port == 8001
        assert config.recovery.sweep_interval == 0
        assert config.cache.warmup is False
        assert config.providers.ollama_enabled is False

    def test_explicit_ollama_setting_kept_in_testing(self, clean_env) -> None:
        clean_env.setenv("OLLAMA_ENABLED", "true")

        config = ConfigFactory.create_config(Environment.TESTING)

        assert config.providers.ollama_enabled is True

    def test_development_overrides(self, clean_env) -> None:
        config = ConfigFactory.create_config(Environment.DEVELOPMENT)

        assert config.debug is True
        assert config.api.log_level == LogLevel.DEBUG

    def test_environment_variable_restored(self, clean_env) -> None:
        ConfigFactory.create_config(Environment.TESTING)

        assert "ENVIRONMENT" not in os.environ

    def test_invalid_configuration_raises(self, clean_env) -> None:
        clean_env.setenv("CORS_ORIGINS", "*")

        with pytest.raises(ConfigurationError):
            ConfigFactory.create_config(Environment.PRODUCTION)
