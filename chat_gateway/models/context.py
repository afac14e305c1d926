"""Core data structures shared by the registry, cache and orchestrator."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMode(str, Enum):
    """Answer modes accepted by the gateway."""
    FAST = "fast"
    DEEP = "deep"


class MessageRole(str, Enum):
    """Roles allowed in conversation history."""
    USER = "user"
    ASSISTANT = "assistant"


HealthCheck = Callable[[], Awaitable[bool]]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ProviderConfig(BaseModel):
    """Static configuration of one provider, fixed at process start."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Provider identifier")
    priority: int = Field(..., description="Fallback priority, lower is preferred")
    enabled: bool = Field(True, description="Whether credentials or a local endpoint are available")
    max_retries: int = Field(1, ge=1, description="Consecutive failures before the provider is marked unhealthy")
    timeout: float = Field(30.0, gt=0, description="Per-dispatch timeout in seconds")
    health_check: Optional[HealthCheck] = Field(default=None, exclude=True, description="Custom recovery probe")


class ProviderHealth(BaseModel):
    """Live health record of one provider."""

    name: str
    is_healthy: bool = True
    last_error: Optional[str] = None
    last_checked_at: datetime = Field(default_factory=utc_now)
    consecutive_failures: int = 0


class ProviderHealthView(BaseModel):
    """Read-only snapshot of a provider's health for diagnostics."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_healthy: bool
    last_error: Optional[str] = None
    last_checked_at: datetime
    consecutive_failures: int
    priority: int
    enabled: bool
    max_retries: int


class CacheEntry(BaseModel):
    """A single cached response."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: str
    payload: Any
    created_at: float
    expires_at: float
    access_count: int = 1
    last_accessed_at: float

    def is_expired(self, now: float) -> bool:
        """Check whether the entry has outlived its TTL."""
        return self.expires_at <= now

    def score(self, frequency_weight: float) -> float:
        """Recency plus frequency score used by capacity eviction."""
        return self.last_accessed_at + self.access_count * frequency_weight


class CacheStats(BaseModel):
    """Derived cache statistics."""

    total_entries: int = Field(..., description="Number of stored entries")
    hit_count: int = Field(..., description="Number of cache hits")
    miss_count: int = Field(..., description="Number of cache misses")
    hit_rate: float = Field(..., description="Hit rate in percent")
    total_size: int = Field(..., description="Approximate serialized size of all entries in bytes")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "total_entries": 42,
            "hit_count": 120,
            "miss_count": 80,
            "hit_rate": 60.0,
            "total_size": 18432
        }
    })


def provider_status_dicts(views: List[ProviderHealthView]) -> List[Dict[str, Any]]:
    """Serialize a status snapshot for error details and logs."""
    return [view.model_dump(mode="json") for view in views]
