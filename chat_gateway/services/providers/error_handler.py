"""Error handling utilities for provider dispatch."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, Optional, TypeVar

from chat_gateway.models.errors import NetworkError, ProviderError


logger = logging.getLogger(__name__)

T = TypeVar('T')


async def call_with_timeout(awaitable: Awaitable[T], timeout: float, provider: str) -> T:
    """Await a provider call, turning a timeout into a ``NetworkError``."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise NetworkError(
            f"{provider} timed out after {timeout}s",
            provider=provider,
            error_type="timeout"
        ) from e


def as_provider_error(error: Exception, provider: str) -> ProviderError:
    """Return provider errors as-is and wrap anything else as unexpected."""
    if isinstance(error, ProviderError):
        if error.provider is None:
            error.provider = provider
            error.details["provider"] = provider
        return error
    return ProviderError(
        f"Unexpected error from {provider}: {error}",
        provider=provider,
        error_type="unexpected"
    )


class ErrorContext:
    """Async context manager that logs the duration and outcome of a provider call."""

    def __init__(
        self,
        operation: str,
        provider: str,
        context: Optional[Dict[str, Any]] = None
    ):
        self.operation = operation
        self.provider = provider
        self.context = context or {}
        self.start_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        return time.perf_counter() - self.start_time if self.start_time is not None else 0.0

    async def __aenter__(self):
        self.start_time = time.perf_counter()
        logger.debug(f"Starting {self.operation} for provider {self.provider}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        duration = self.elapsed

        if exc_type is None:
            logger.debug(f"Completed {self.operation} for provider {self.provider} in {duration:.2f}s")
        elif issubclass(exc_type, asyncio.CancelledError):
            logger.info(f"Cancelled {self.operation} for provider {self.provider} after {duration:.2f}s")
        else:
            logger.warning(
                f"Failed {self.operation} for provider {self.provider} after {duration:.2f}s: {exc_val}",
                extra={
                    "operation": self.operation,
                    "provider": self.provider,
                    "duration": duration,
                    "error_type": exc_type.__name__,
                    "context": self.context
                }
            )

        return False  # Don't suppress exceptions
