"""Request orchestrator: cache, provider selection, retry and fallback."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from chat_gateway.config.models import ChatConfig
from chat_gateway.logging.config import log_performance
from chat_gateway.models.context import ChatMode, MessageRole, provider_status_dicts
from chat_gateway.models.errors import (
    CacheError,
    ExhaustedProvidersError,
    ProviderError,
    ValidationError,
)
from chat_gateway.models.interfaces import IChatService, IProviderAdapter
from chat_gateway.models.requests import ChatRequest
from chat_gateway.models.responses import ChatResponse, NormalizedResponse
from .cache import ResponseCache
from .providers.error_handler import ErrorContext, as_provider_error, call_with_timeout
from .providers.registry import ProviderHealthRegistry


logger = logging.getLogger(__name__)

_VALID_MODES = {mode.value for mode in ChatMode}
_VALID_ROLES = {role.value for role in MessageRole}


class ChatService(IChatService):
    """Serves chat requests across the provider fallback chain.

    Each request walks the fallback order once: a provider is retried while
    the registry allows it, then the next healthy one is tried. Provider
    health is shared, so failures seen here change routing for every
    concurrent request. When nothing answers, ``ExhaustedProvidersError`` is
    raised; no answer is ever fabricated.
    """

    def __init__(
        self,
        registry: ProviderHealthRegistry,
        cache: ResponseCache,
        adapters: Dict[str, IProviderAdapter],
        chat_config: Optional[ChatConfig] = None
    ):
        self.registry = registry
        self.cache = cache
        self.adapters = adapters
        self.config = chat_config or ChatConfig()
        self._abandoned: Set[asyncio.Task] = set()

        missing = [name for name in registry.fallback_order if name not in adapters]
        if missing:
            logger.warning(f"Enabled providers without an adapter: {missing}")

        logger.info(f"Initialized ChatService with {len(adapters)} adapters")

    async def handle(self, request: ChatRequest) -> ChatResponse:
        """Serve one chat request."""
        start_time = time.perf_counter()
        message, mode, history = self._validate(request)

        cached = self._cached_response(message, mode)
        if cached is not None:
            elapsed = time.perf_counter() - start_time
            log_performance(logger, "chat.cache_hit", elapsed, {"mode": mode})
            return ChatResponse.from_normalized(cached, elapsed * 1000, cached=True)

        provider = self.registry.best_available()
        if provider is None:
            raise ExhaustedProvidersError(
                "No providers available",
                last_error=None,
                providers_status=provider_status_dicts(self.registry.status_snapshot())
            )

        # Each provider gets at most max_retries attempts in one pass over the order.
        max_attempts = sum(self.registry.config(name).max_retries for name in self.registry.fallback_order)
        attempt_count = 0
        last_error: Optional[ProviderError] = None

        for _ in range(max_attempts):
            attempt_count += 1
            try:
                response = await self._dispatch(provider, message, mode, history, attempt_count)
            except ProviderError as e:
                last_error = e
                self.registry.mark_unhealthy(provider, e)

                if self.registry.can_retry(provider, attempt_count):
                    logger.info(
                        f"Retrying {provider} (attempt {attempt_count + 1})",
                        extra={"provider": provider, "attempt": attempt_count + 1}
                    )
                    continue

                next_provider = self.registry.next_provider(provider)
                if next_provider is None:
                    break

                logger.info(
                    f"Falling back from {provider} to {next_provider}",
                    extra={"from_provider": provider, "to_provider": next_provider}
                )
                provider = next_provider
                attempt_count = 0
                continue

            self.registry.mark_healthy(provider)
            self._store_response(message, mode, response)

            elapsed = time.perf_counter() - start_time
            log_performance(logger, "chat.provider", elapsed, {"provider": provider, "mode": mode})
            return ChatResponse.from_normalized(response, elapsed * 1000)

        last_message = str(last_error) if last_error else "unknown error"
        logger.error(
            f"All providers failed. Last error: {last_message}",
            extra={"last_error": last_message, "mode": mode}
        )
        raise ExhaustedProvidersError(
            f"All providers failed. Last error: {last_message}",
            last_error=last_message,
            providers_status=provider_status_dicts(self.registry.status_snapshot())
        )

    def _validate(self, request: ChatRequest):
        """Check the request and return the message, mode and trimmed history."""
        message = request.message.strip() if request.message else ""
        if not message:
            raise ValidationError("Message cannot be empty", field="message")

        if len(message) > self.config.max_message_length:
            raise ValidationError(
                f"Message is too long (max {self.config.max_message_length} characters)",
                field="message"
            )

        if request.mode not in _VALID_MODES:
            raise ValidationError(
                f"Invalid mode '{request.mode}'. Expected one of: {', '.join(sorted(_VALID_MODES))}",
                field="mode",
                invalid_value=request.mode
            )

        for index, turn in enumerate(request.history):
            if turn.role not in _VALID_ROLES:
                raise ValidationError(
                    f"History message {index} has invalid role: {turn.role}",
                    field="history",
                    invalid_value=turn.role
                )

        history: List[Dict[str, str]] = []
        if self.config.max_history_messages > 0:
            history = [
                {"role": turn.role, "content": turn.content}
                for turn in request.history[-self.config.max_history_messages:]
            ]

        return message, request.mode, history

    async def _dispatch(
        self,
        provider: str,
        message: str,
        mode: str,
        history: List[Dict[str, str]],
        attempt: int
    ) -> NormalizedResponse:
        """Call one provider once under its timeout."""
        adapter = self.adapters.get(provider)
        if adapter is None:
            raise ProviderError(
                f"No adapter registered for {provider}",
                provider=provider,
                error_type="unregistered"
            )

        timeout = self.registry.config(provider).timeout
        call = asyncio.ensure_future(self._call_adapter(adapter, provider, message, mode, history, timeout))
        async with ErrorContext("execute", provider, {"mode": mode, "attempt": attempt}):
            try:
                return await asyncio.shield(call)
            except asyncio.CancelledError:
                # The caller is gone but the attempt still tells us about the provider.
                self._settle_abandoned(provider, call)
                raise

    async def _call_adapter(
        self,
        adapter: IProviderAdapter,
        provider: str,
        message: str,
        mode: str,
        history: List[Dict[str, str]],
        timeout: float
    ) -> NormalizedResponse:
        try:
            return await call_with_timeout(adapter.execute(message, mode, history), timeout, provider)
        except ProviderError as e:
            raise as_provider_error(e, provider)
        except Exception as e:
            raise as_provider_error(e, provider) from e

    def _settle_abandoned(self, provider: str, call: "asyncio.Future[NormalizedResponse]") -> None:
        """Let an abandoned attempt run out its timeout and report the outcome."""
        task = asyncio.ensure_future(self._record_outcome(provider, call))
        self._abandoned.add(task)
        task.add_done_callback(self._abandoned.discard)

    async def _record_outcome(self, provider: str, call: "asyncio.Future[NormalizedResponse]") -> None:
        try:
            await call
        except ProviderError as e:
            logger.info(
                f"Abandoned attempt against {provider} failed: {e}",
                extra={"provider": provider, "abandoned": True}
            )
            self.registry.mark_unhealthy(provider, e)
            return
        self.registry.mark_healthy(provider)

    async def shutdown(self, wait: bool = False) -> None:
        """Finish or cancel attempts still running for abandoned requests.

        Args:
            wait: Let them run out their timeouts instead of cancelling them
        """
        tasks = list(self._abandoned)
        if not wait:
            for task in tasks:
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _cached_response(self, message: str, mode: str) -> Optional[NormalizedResponse]:
        try:
            payload = self.cache.get(message, mode)
        except CacheError as e:
            logger.warning(f"Cache lookup failed, treating as miss: {e}", extra={"operation": "get"})
            return None
        return _as_normalized(payload)

    def _store_response(self, message: str, mode: str, response: NormalizedResponse) -> None:
        try:
            self.cache.set(message, mode, response)
        except CacheError as e:
            logger.warning(f"Cache write failed, response not cached: {e}", extra={"operation": "set"})


def _as_normalized(payload: Any) -> Optional[NormalizedResponse]:
    if payload is None or isinstance(payload, NormalizedResponse):
        return payload
    try:
        return NormalizedResponse.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning(f"Ignoring unreadable cached payload: {e}")
        return None

