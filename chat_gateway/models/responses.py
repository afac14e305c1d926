"""Response models for the chat gateway."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .context import CacheStats, ProviderHealthView, utc_now


class NormalizedResponse(BaseModel):
    """Provider-independent answer produced by an adapter."""

    content: str = Field(..., description="The generated answer")
    reasoning: Optional[str] = Field(default=None, description="Optional reasoning trace")
    mode: str = Field(..., description="Mode the answer was generated for")
    model: str = Field(..., description="Identifier of the model that answered")


class ChatResponse(BaseModel):
    """Response model returned to the caller."""

    content: str = Field(..., description="The generated answer")
    reasoning: Optional[str] = Field(default=None, description="Optional reasoning trace")
    mode: str = Field(..., description="Mode the answer was generated for")
    processing_time_ms: float = Field(..., description="Time spent serving the request in milliseconds")
    model: str = Field(..., description="Identifier of the model that answered")
    cached: bool = Field(default=False, description="Whether the answer came from the response cache")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "content": "A circuit breaker stops calling a failing dependency...",
            "reasoning": None,
            "mode": "deep",
            "processing_time_ms": 842.3,
            "model": "groq:llama-3.1-70b-versatile",
            "cached": False
        }
    })

    @classmethod
    def from_normalized(
        cls,
        response: NormalizedResponse,
        processing_time_ms: float,
        cached: bool = False
    ) -> "ChatResponse":
        """Build a caller response from an adapter response."""
        return cls(
            content=response.content,
            reasoning=response.reasoning,
            mode=response.mode,
            processing_time_ms=round(processing_time_ms, 2),
            model=response.model,
            cached=cached
        )


class ProvidersOverview(BaseModel):
    """Provider section of the statistics endpoint."""

    current: Optional[str] = Field(default=None, description="Provider that would serve the next request")
    status: List[ProviderHealthView] = Field(default_factory=list, description="Per-provider health")
    available: int = Field(..., description="Number of healthy providers")
    total: int = Field(..., description="Number of configured providers")


class CacheOverview(CacheStats):
    """Cache section of the statistics endpoint."""

    hit_rate_formatted: str = Field(..., description="Hit rate as a percentage string")
    total_size_formatted: str = Field(..., description="Approximate size in human-readable units")


class StatsResponse(BaseModel):
    """Operational statistics."""

    providers: ProvidersOverview
    cache: CacheOverview
    system: Dict[str, Any] = Field(default_factory=dict, description="Process information")
    timestamp: datetime = Field(default_factory=utc_now, description="When the snapshot was taken")


class HealthStatus(BaseModel):
    """Health status information."""

    status: str = Field(..., description="Overall health status (healthy, degraded, unhealthy)")
    timestamp: datetime = Field(default_factory=utc_now, description="When the health check was performed")
    version: str = Field(..., description="Application version")
    uptime: float = Field(..., description="Application uptime in seconds")
    environment: Optional[str] = Field(default=None, description="Deployment environment")
    healthy_providers: int = Field(default=0, description="Number of currently healthy providers")
    total_providers: int = Field(default=0, description="Number of configured providers")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "healthy",
            "timestamp": "2024-01-01T12:00:00Z",
            "version": "0.1.0",
            "uptime": 3600.0,
            "environment": "development",
            "healthy_providers": 3,
            "total_providers": 4
        }
    })


class ModelsResponse(BaseModel):
    """Models offered by each enabled provider."""

    providers: Dict[str, List[str]] = Field(default_factory=dict, description="Model identifiers per provider")
