"""Configuration models using Pydantic for type validation."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class Environment(str, Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProviderName(str, Enum):
    """Providers the gateway knows how to talk to."""
    GROQ = "groq"
    HUGGINGFACE = "huggingface"
    TOGETHER = "together"
    COHERE = "cohere"
    OLLAMA = "ollama"
    OPENAI = "openai"


class ProviderDefaults(BaseModel):
    """Routing defaults for one provider."""
    priority: int
    max_retries: int
    timeout: float


# Fallback table: priority ascending is preferred.
DEFAULT_PROVIDER_TABLE: Dict[ProviderName, ProviderDefaults] = {
    ProviderName.GROQ: ProviderDefaults(priority=1, max_retries=2, timeout=30.0),
    ProviderName.HUGGINGFACE: ProviderDefaults(priority=2, max_retries=3, timeout=60.0),
    ProviderName.TOGETHER: ProviderDefaults(priority=3, max_retries=2, timeout=45.0),
    ProviderName.COHERE: ProviderDefaults(priority=4, max_retries=2, timeout=30.0),
    ProviderName.OLLAMA: ProviderDefaults(priority=5, max_retries=1, timeout=120.0),
    ProviderName.OPENAI: ProviderDefaults(priority=6, max_retries=2, timeout=30.0),
}


class ProvidersConfig(BaseModel):
    """Provider credentials and endpoints."""
    groq_api_key: Optional[str] = Field(None, description="Groq API key")
    huggingface_token: Optional[str] = Field(None, description="Hugging Face token (optional)")
    huggingface_enabled: bool = Field(False, description="Enable Hugging Face even without a token")
    together_api_key: Optional[str] = Field(None, description="Together AI API key")
    cohere_api_key: Optional[str] = Field(None, description="Cohere API key")
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    ollama_url: str = Field("http://localhost:11434", description="Base URL of the local Ollama server")
    ollama_enabled: Optional[bool] = Field(None, description="Force Ollama on or off; probe when unset")


class CacheConfig(BaseModel):
    """Response cache configuration."""
    enabled: bool = Field(True, description="Enable the response cache")
    max_entries: int = Field(1000, ge=1, description="Maximum number of cached responses")
    default_ttl: float = Field(1800.0, gt=0, description="Default TTL in seconds")
    warmup_ttl: float = Field(86400.0, gt=0, description="TTL of prewarmed entries in seconds")
    min_message_length: int = Field(3, ge=0, description="Shortest cacheable message")
    max_message_length: int = Field(1000, ge=1, description="Longest cacheable message")
    frequency_weight: float = Field(60.0, ge=0, description="Seconds of recency one access is worth")
    volatile_patterns: Optional[List[str]] = Field(
        None, description="Regexes marking messages that must not be cached; defaults when unset"
    )
    warmup: bool = Field(True, description="Seed canonical answers at startup")


class RecoveryConfig(BaseModel):
    """Provider recovery timing."""
    short_delay: float = Field(30.0, gt=0, description="Probe delay after an isolated failure, seconds")
    long_delay: float = Field(300.0, gt=0, description="Probe delay after repeated failures, seconds")
    repeated_failure_threshold: int = Field(3, ge=1, description="Failures after which the long delay applies")
    sweep_interval: float = Field(60.0, ge=0, description="Interval of the periodic recovery sweep, 0 disables it")


class ChatConfig(BaseModel):
    """Request handling limits."""
    max_message_length: int = Field(2000, ge=1, description="Longest accepted message")
    max_history_messages: int = Field(10, ge=0, description="History turns forwarded to providers")


class APIConfig(BaseModel):
    """API server configuration."""
    host: str = Field("0.0.0.0", description="API server host")
    port: int = Field(8000, ge=1, le=65535, description="API server port")
    log_level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    cors_origins: List[str] = Field(["*"], description="CORS allowed origins")

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",")]
        return v


class AppConfig(BaseModel):
    """Main application configuration."""
    environment: Environment = Field(Environment.DEVELOPMENT, description="Application environment")
    debug: bool = Field(False, description="Enable debug mode")
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig, description="Provider configuration")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Cache configuration")
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig, description="Recovery configuration")
    chat: ChatConfig = Field(default_factory=ChatConfig, description="Request limits")
    api: APIConfig = Field(default_factory=APIConfig, description="API configuration")

    @field_validator('debug', mode='before')
    @classmethod
    def parse_debug(cls, v):
        """Accept common truthy strings for debug."""
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return v

    model_config = {
        "validate_assignment": True,
    }
