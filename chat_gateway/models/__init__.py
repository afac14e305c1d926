"""Models package for the chat gateway."""

# Request models
from .requests import (
    ChatRequest,
    HistoryMessage,
)

# Response models
from .responses import (
    NormalizedResponse,
    ChatResponse,
    ProvidersOverview,
    CacheOverview,
    StatsResponse,
    HealthStatus,
    ModelsResponse,
)

# Error models
from .errors import (
    ErrorResponse,
    ErrorCodes,
    ChatGatewayError,
    ValidationError,
    ConfigurationError,
    ProviderError,
    NetworkError,
    AuthError,
    RateLimitError,
    MalformedResponseError,
    ExhaustedProvidersError,
    CacheError,
)

# Context and data structures
from .context import (
    ChatMode,
    MessageRole,
    ProviderConfig,
    ProviderHealth,
    ProviderHealthView,
    CacheEntry,
    CacheStats,
)

# Abstract interfaces
from .interfaces import (
    IProviderAdapter,
    IChatService,
)

__all__ = [
    # Request models
    "ChatRequest",
    "HistoryMessage",

    # Response models
    "NormalizedResponse",
    "ChatResponse",
    "ProvidersOverview",
    "CacheOverview",
    "StatsResponse",
    "HealthStatus",
    "ModelsResponse",

    # Error models
    "ErrorResponse",
    "ErrorCodes",
    "ChatGatewayError",
    "ValidationError",
    "ConfigurationError",
    "ProviderError",
    "NetworkError",
    "AuthError",
    "RateLimitError",
    "MalformedResponseError",
    "ExhaustedProvidersError",
    "CacheError",

    # Context and data structures
    "ChatMode",
    "MessageRole",
    "ProviderConfig",
    "ProviderHealth",
    "ProviderHealthView",
    "CacheEntry",
    "CacheStats",

    # Abstract interfaces
    "IProviderAdapter",
    "IChatService",
]
