"""Environment variable loading and configuration settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import (
    APIConfig,
    AppConfig,
    CacheConfig,
    ChatConfig,
    Environment,
    LogLevel,
    ProvidersConfig,
    RecoveryConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Environment = Field(Environment.DEVELOPMENT, alias="ENVIRONMENT")
    debug: bool = Field(False, alias="DEBUG")

    # Provider credentials
    groq_api_key: Optional[str] = Field(None, alias="GROQ_API_KEY")
    huggingface_token: Optional[str] = Field(None, alias="HUGGINGFACE_TOKEN")
    huggingface_enabled: bool = Field(False, alias="HUGGINGFACE_ENABLED")
    together_api_key: Optional[str] = Field(None, alias="TOGETHER_API_KEY")
    cohere_api_key: Optional[str] = Field(None, alias="COHERE_API_KEY")
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    ollama_url: str = Field("http://localhost:11434", alias="OLLAMA_URL")
    ollama_enabled: Optional[bool] = Field(None, alias="OLLAMA_ENABLED")

    # Cache Configuration
    cache_enabled: bool = Field(True, alias="CACHE_ENABLED")
    cache_max_entries: int = Field(1000, alias="CACHE_MAX_ENTRIES")
    cache_default_ttl: float = Field(1800.0, alias="CACHE_DEFAULT_TTL")
    cache_warmup_ttl: float = Field(86400.0, alias="CACHE_WARMUP_TTL")
    cache_min_message_length: int = Field(3, alias="CACHE_MIN_MESSAGE_LENGTH")
    cache_max_message_length: int = Field(1000, alias="CACHE_MAX_MESSAGE_LENGTH")
    cache_frequency_weight: float = Field(60.0, alias="CACHE_FREQUENCY_WEIGHT")
    cache_warmup: bool = Field(True, alias="CACHE_WARMUP")

    # Recovery Configuration
    recovery_short_delay: float = Field(30.0, alias="RECOVERY_SHORT_DELAY")
    recovery_long_delay: float = Field(300.0, alias="RECOVERY_LONG_DELAY")
    recovery_repeated_failure_threshold: int = Field(3, alias="RECOVERY_REPEATED_FAILURE_THRESHOLD")
    recovery_sweep_interval: float = Field(60.0, alias="RECOVERY_SWEEP_INTERVAL")

    # Request limits
    max_message_length: int = Field(2000, alias="MAX_MESSAGE_LENGTH")
    max_history_messages: int = Field(10, alias="MAX_HISTORY_MESSAGES")

    # API Configuration
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")
    log_level: LogLevel = Field(LogLevel.INFO, alias="LOG_LEVEL")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def to_app_config(self) -> AppConfig:
        """Convert settings to AppConfig model."""
        return AppConfig(
            environment=self.environment,
            debug=self.debug,
            providers=ProvidersConfig(
                groq_api_key=self.groq_api_key,
                huggingface_token=self.huggingface_token,
                huggingface_enabled=self.huggingface_enabled,
                together_api_key=self.together_api_key,
                cohere_api_key=self.cohere_api_key,
                openai_api_key=self.openai_api_key,
                ollama_url=self.ollama_url,
                ollama_enabled=self.ollama_enabled,
            ),
            cache=CacheConfig(
                enabled=self.cache_enabled,
                max_entries=self.cache_max_entries,
                default_ttl=self.cache_default_ttl,
                warmup_ttl=self.cache_warmup_ttl,
                min_message_length=self.cache_min_message_length,
                max_message_length=self.cache_max_message_length,
                frequency_weight=self.cache_frequency_weight,
                warmup=self.cache_warmup,
            ),
            recovery=RecoveryConfig(
                short_delay=self.recovery_short_delay,
                long_delay=self.recovery_long_delay,
                repeated_failure_threshold=self.recovery_repeated_failure_threshold,
                sweep_interval=self.recovery_sweep_interval,
            ),
            chat=ChatConfig(
                max_message_length=self.max_message_length,
                max_history_messages=self.max_history_messages,
            ),
            api=APIConfig(
                host=self.api_host,
                port=self.api_port,
                log_level=self.log_level,
                cors_origins=self.cors_origins,
            ),
        )


def load_settings() -> Settings:
    """Load settings from environment variables and .env file."""
    return Settings()


def get_config() -> AppConfig:
    """Get application configuration."""
    settings = load_settings()
    return settings.to_app_config()
