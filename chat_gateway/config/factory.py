"""Configuration factory for different environments."""

import os
from typing import Callable, Dict, Optional

from chat_gateway.models.errors import ConfigurationError
from .models import AppConfig, Environment, LogLevel
from .settings import get_config
from .validation import validate_config


class ConfigFactory:
    """Builds the configuration for one environment from the process settings."""

    @staticmethod
    def create_config(environment: Optional[Environment] = None) -> AppConfig:
        """Create configuration for the specified environment.

        Args:
            environment: Target environment. If None, uses ENVIRONMENT env var.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigurationError: If configuration is invalid.
        """
        original_env = os.environ.get("ENVIRONMENT")
        if environment:
            os.environ["ENVIRONMENT"] = environment.value

        try:
            config = get_config()
            override = _OVERRIDES.get(config.environment)
            if override is not None:
                config = override(config)

            validation_errors = validate_config(config)
            if validation_errors:
                error_msg = "Configuration validation failed:\n" + "\n".join(validation_errors)
                raise ConfigurationError(error_msg)

            return config

        finally:
            if environment:
                if original_env is None:
                    os.environ.pop("ENVIRONMENT", None)
                else:
                    os.environ["ENVIRONMENT"] = original_env

    @staticmethod
    def _apply_development_overrides(config: AppConfig) -> AppConfig:
        config.debug = True
        if config.api.log_level == LogLevel.INFO:
            config.api.log_level = LogLevel.DEBUG
        return config

    @staticmethod
    def _apply_testing_overrides(config: AppConfig) -> AppConfig:
        """No sweeps, no prewarmed answers and no local probing in the test suite."""
        config.debug = False
        config.api.port = 8001
        config.recovery.sweep_interval = 0
        config.cache.warmup = False
        if config.providers.ollama_enabled is None:
            config.providers.ollama_enabled = False
        return config

    @staticmethod
    def _apply_staging_overrides(config: AppConfig) -> AppConfig:
        config.debug = False
        config.api.log_level = LogLevel.INFO
        return config

    @staticmethod
    def _apply_production_overrides(config: AppConfig) -> AppConfig:
        config.debug = False
        if config.api.log_level == LogLevel.DEBUG:
            config.api.log_level = LogLevel.INFO
        return config


_OVERRIDES: Dict[Environment, Callable[[AppConfig], AppConfig]] = {
    Environment.DEVELOPMENT: ConfigFactory._apply_development_overrides,
    Environment.TESTING: ConfigFactory._apply_testing_overrides,
    Environment.STAGING: ConfigFactory._apply_staging_overrides,
    Environment.PRODUCTION: ConfigFactory._apply_production_overrides,
}


def create_config_for_environment(env: Environment) -> AppConfig:
    """Create and validate the configuration for ``env``."""
    return ConfigFactory.create_config(env)


def get_current_config() -> AppConfig:
    """Get configuration for the environment named by ``ENVIRONMENT``."""
    return ConfigFactory.create_config()
