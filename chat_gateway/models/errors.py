"""Error models for the chat gateway."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .context import utc_now


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: str = Field(..., description="Specific error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(default_factory=utc_now, description="When the error occurred")
    request_id: Optional[str] = Field(default=None, description="Request ID for tracking")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error_code": "PROVIDERS_EXHAUSTED",
            "message": "All providers failed. Last error: groq rate limit exceeded",
            "details": {
                "last_error": "groq rate limit exceeded",
                "providers_status": [
                    {"name": "groq", "is_healthy": False, "consecutive_failures": 2}
                ]
            },
            "timestamp": "2024-01-01T12:00:00Z",
            "request_id": "req_123456"
        }
    })


# Common error codes as constants
class ErrorCodes:
    """Standard error codes used throughout the application."""

    # General errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Provider errors
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_NETWORK_ERROR = "PROVIDER_NETWORK_ERROR"
    PROVIDER_AUTH_ERROR = "PROVIDER_AUTH_ERROR"
    PROVIDER_RATE_LIMIT = "PROVIDER_RATE_LIMIT"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_INVALID_RESPONSE = "PROVIDER_INVALID_RESPONSE"
    PROVIDERS_EXHAUSTED = "PROVIDERS_EXHAUSTED"

    # Cache errors
    CACHE_ERROR = "CACHE_ERROR"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"


# Custom exception classes
class ChatGatewayError(Exception):
    """Base exception for chat gateway errors."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or ErrorCodes.INTERNAL_SERVER_ERROR
        self.details = details or {}


class ValidationError(ChatGatewayError):
    """Exception for malformed caller input."""

    def __init__(self, message: str, field: str = None, invalid_value: Any = None):
        super().__init__(message, ErrorCodes.VALIDATION_ERROR)
        if field:
            self.details["field"] = field
        if invalid_value is not None:
            self.details["invalid_value"] = invalid_value


class ConfigurationError(ChatGatewayError):
    """Exception for configuration errors."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(message, ErrorCodes.CONFIG_ERROR)
        if config_key:
            self.details["config_key"] = config_key


class ProviderError(ChatGatewayError):
    """Failure of a single dispatch attempt against one provider."""

    default_error_code = ErrorCodes.PROVIDER_ERROR

    def __init__(self, message: str, provider: str = None, error_type: str = None):
        error_code = self.default_error_code
        if error_type == "timeout":
            error_code = ErrorCodes.PROVIDER_TIMEOUT

        super().__init__(message, error_code)
        self.provider = provider
        self.error_type = error_type
        if provider:
            self.details["provider"] = provider
        if error_type:
            self.details["error_type"] = error_type


class NetworkError(ProviderError):
    """Connection failure, timeout or server-side error from a provider."""

    default_error_code = ErrorCodes.PROVIDER_NETWORK_ERROR


class AuthError(ProviderError):
    """Provider rejected the configured credentials."""

    default_error_code = ErrorCodes.PROVIDER_AUTH_ERROR


class RateLimitError(ProviderError):
    """Provider refused the request because of a rate limit."""

    default_error_code = ErrorCodes.PROVIDER_RATE_LIMIT


class MalformedResponseError(ProviderError):
    """Provider answered with a body the adapter could not understand."""

    default_error_code = ErrorCodes.PROVIDER_INVALID_RESPONSE


class ExhaustedProvidersError(ChatGatewayError):
    """No enabled provider can currently serve the request."""

    def __init__(
        self,
        message: str,
        last_error: Optional[str] = None,
        providers_status: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message, ErrorCodes.PROVIDERS_EXHAUSTED)
        self.last_error = last_error
        self.providers_status = providers_status or []
        self.details["last_error"] = last_error
        self.details["providers_status"] = self.providers_status


class CacheError(ChatGatewayError):
    """Internal failure of the response cache."""

    def __init__(self, message: str, operation: str = None):
        super().__init__(message, ErrorCodes.CACHE_ERROR)
        if operation:
            self.details["operation"] = operation
