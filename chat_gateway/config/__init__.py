"""Configuration package for the chat gateway."""

from .factory import ConfigFactory, create_config_for_environment, get_current_config
from .models import (
    AppConfig,
    CacheConfig,
    ChatConfig,
    DEFAULT_PROVIDER_TABLE,
    Environment,
    LogLevel,
    ProviderName,
    ProvidersConfig,
    RecoveryConfig,
)
from .settings import get_config, load_settings
from .validation import validate_config, validate_startup_config

__all__ = [
    # Main configuration interfaces
    "get_current_config",
    "get_config",
    "validate_startup_config",

    # Factory functions
    "ConfigFactory",
    "create_config_for_environment",

    # Models and enums
    "AppConfig",
    "CacheConfig",
    "ChatConfig",
    "DEFAULT_PROVIDER_TABLE",
    "Environment",
    "LogLevel",
    "ProviderName",
    "ProvidersConfig",
    "RecoveryConfig",

    # Utilities
    "load_settings",
    "validate_config",
]
