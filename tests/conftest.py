"""Shared test fixtures."""

from typing import Dict, List, Optional, Sequence, Union

import pytest

from chat_gateway.config.models import CacheConfig, ChatConfig, RecoveryConfig
from chat_gateway.models.context import HealthCheck, ProviderConfig
from chat_gateway.models.interfaces import IProviderAdapter
from chat_gateway.models.responses import NormalizedResponse
from chat_gateway.services.cache import ResponseCache
from chat_gateway.services.chat_service import ChatService
from chat_gateway.services.providers.registry import ProviderHealthRegistry


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedAdapter(IProviderAdapter):
    """Adapter that replays a script of answers and exceptions."""

    def __init__(self, name: str, outcomes: Sequence[Union[str, Exception]] = ()):
        self._name = name
        self._outcomes = list(outcomes)
        self.calls: List[Dict] = []
        self.closed = False

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def available_models(self) -> List[str]:
        return [f"{self._name}-model"]

    async def execute(self, message, mode, history):
        self.calls.append({"message": message, "mode": mode, "history": history})
        outcome = self._outcomes.pop(0) if self._outcomes else f"answer from {self._name}"
        if isinstance(outcome, Exception):
            raise outcome
        return NormalizedResponse(content=outcome, mode=mode, model=f"{self._name}:test")

    async def aclose(self) -> None:
        self.closed = True


def make_config(
    name: str,
    priority: int,
    max_retries: int = 1,
    timeout: float = 5.0,
    enabled: bool = True,
    health_check: Optional[HealthCheck] = None
) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        priority=priority,
        enabled=enabled,
        max_retries=max_retries,
        timeout=timeout,
        health_check=health_check,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recovery_config() -> RecoveryConfig:
    return RecoveryConfig(short_delay=30.0, long_delay=300.0, repeated_failure_threshold=3, sweep_interval=0)


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(max_entries=10, default_ttl=60.0, warmup_ttl=600.0)


@pytest.fixture
def cache(cache_config, clock) -> ResponseCache:
    return ResponseCache(cache_config, clock=clock)


@pytest.fixture
def two_provider_registry(recovery_config) -> ProviderHealthRegistry:
    """Providers X (priority 1, 2 retries) and Y (priority 2, 1 retry)."""
    return ProviderHealthRegistry(
        [make_config("x", 1, max_retries=2), make_config("y", 2, max_retries=1)],
        recovery_config,
    )


def make_service(
    registry: ProviderHealthRegistry,
    cache: ResponseCache,
    adapters: Dict[str, IProviderAdapter],
    chat_config: Optional[ChatConfig] = None
) -> ChatService:
    return ChatService(registry, cache, adapters, chat_config or ChatConfig())
