"""Configuration validation with clear error messages."""

from typing import List

from .models import AppConfig, Environment, LogLevel


def validate_config(config: AppConfig) -> List[str]:
    """Validate application configuration and return list of error messages.

    Args:
        config: Application configuration to validate.

    Returns:
        List of validation error messages. Empty list if valid.
    """
    errors = []

    # Validate provider configuration
    errors.extend(_validate_providers_config(config))

    # Validate cache configuration
    errors.extend(_validate_cache_config(config))

    # Validate recovery timing
    errors.extend(_validate_recovery_config(config))

    # Validate API configuration
    errors.extend(_validate_api_config(config))

    # Validate environment-specific requirements
    errors.extend(_validate_environment_config(config))

    return errors


def _validate_providers_config(config: AppConfig) -> List[str]:
    """Validate provider credentials."""
    errors = []
    providers = config.providers

    keys = {
        "GROQ_API_KEY": providers.groq_api_key,
        "TOGETHER_API_KEY": providers.together_api_key,
        "COHERE_API_KEY": providers.cohere_api_key,
        "OPENAI_API_KEY": providers.openai_api_key,
    }
    for env_name, value in keys.items():
        if value and len(value.strip()) < 10:
            errors.append(
                f"{env_name} appears to be too short. "
                "Please check your API key."
            )

    if not providers.ollama_url or not providers.ollama_url.startswith(("http://", "https://")):
        errors.append("OLLAMA_URL must be an http(s) URL.")

    return errors


def _validate_cache_config(config: AppConfig) -> List[str]:
    """Validate cache configuration."""
    errors = []
    cache = config.cache

    if cache.min_message_length > cache.max_message_length:
        errors.append(
            "CACHE_MIN_MESSAGE_LENGTH cannot be greater than CACHE_MAX_MESSAGE_LENGTH."
        )

    if cache.warmup_ttl < cache.default_ttl:
        errors.append(
            "CACHE_WARMUP_TTL should not be shorter than CACHE_DEFAULT_TTL."
        )

    return errors


def _validate_recovery_config(config: AppConfig) -> List[str]:
    """Validate recovery delays."""
    errors = []

    if config.recovery.short_delay > config.recovery.long_delay:
        errors.append(
            "RECOVERY_SHORT_DELAY cannot exceed RECOVERY_LONG_DELAY."
        )

    return errors


def _validate_api_config(config: AppConfig) -> List[str]:
    """Validate API configuration."""
    errors = []

    # Validate host
    if not config.api.host or not config.api.host.strip():
        errors.append("API host cannot be empty.")

    # Validate CORS origins
    if not config.api.cors_origins:
        errors.append("CORS origins cannot be empty.")

    return errors


def _validate_environment_config(config: AppConfig) -> List[str]:
    """Validate environment-specific configuration requirements."""
    errors = []

    if config.environment == Environment.PRODUCTION:
        if config.debug:
            errors.append("Debug mode should be disabled in production.")

        if config.api.cors_origins == ["*"]:
            errors.append(
                "CORS origins should be restricted in production. "
                "Avoid using '*' and specify allowed origins explicitly."
            )

        if config.api.log_level == LogLevel.DEBUG:
            errors.append(
                "Debug logging should be avoided in production. "
                "Use INFO or higher log level."
            )

    return errors


def validate_startup_config() -> None:
    """Validate configuration at startup and raise exception if invalid.

    Raises:
        ValueError: If configuration is invalid with detailed error message.
    """
    from .factory import ConfigurationError, get_current_config

    try:
        config = get_current_config()
        errors = validate_config(config)

        if errors:
            error_message = (
                "Configuration validation failed. Please fix the following issues:\n\n" +
                "\n".join(f"- {error}" for error in errors) +
                "\n\nCheck your environment variables and .env file."
            )
            raise ValueError(error_message)

    except ValueError as e:
        if "Configuration validation failed" in str(e):
            raise
        raise ValueError(
            f"Failed to load or validate configuration: {str(e)}\n"
            "Please check your environment variables and .env file."
        ) from e
    except ConfigurationError as e:
        raise ValueError(
            f"Failed to load or validate configuration: {str(e)}\n"
            "Please check your environment variables and .env file."
        ) from e
