"""Base provider adapter with common functionality."""

import json
import logging
import re
from abc import ABC
from typing import Any, Dict, List, Optional, Tuple

import httpx

from chat_gateway.models.context import ChatMode
from chat_gateway.models.errors import (
    AuthError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    RateLimitError,
)
from chat_gateway.models.interfaces import IProviderAdapter
from chat_gateway.models.responses import NormalizedResponse


logger = logging.getLogger(__name__)


MODE_PARAMETERS: Dict[str, Dict[str, Any]] = {
    ChatMode.FAST.value: {"max_tokens": 200, "temperature": 0.7},
    ChatMode.DEEP.value: {"max_tokens": 500, "temperature": 0.8},
}

SYSTEM_PROMPTS: Dict[str, str] = {
    ChatMode.FAST.value: (
        "You are a helpful assistant. Answer briefly and to the point, "
        "in the language of the user's message."
    ),
    ChatMode.DEEP.value: (
        "You are a thoughtful assistant. Work through the question carefully "
        "and give a complete, well-structured answer in the language of the "
        "user's message."
    ),
}

# Number of prior turns forwarded to a provider.
HISTORY_WINDOW = 6

_THINK_PATTERN = re.compile(r"<think>(.*?)</think>", re.DOTALL | re.IGNORECASE)


class BaseProviderAdapter(IProviderAdapter, ABC):
    """Base implementation for provider adapters with common functionality.

    Subclasses translate one provider's wire format. Every failure leaves the
    adapter as one of ``NetworkError``, ``AuthError``, ``RateLimitError`` or
    ``MalformedResponseError``.
    """

    def __init__(
        self,
        name: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the adapter.

        Args:
            name: Provider identifier the adapter is registered under
            timeout: Transport timeout in seconds
            client: Shared HTTP client; one is created and owned when omitted
        """
        self._name = name
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self._name

    def _mode_parameters(self, mode: str) -> Dict[str, Any]:
        return MODE_PARAMETERS.get(mode, MODE_PARAMETERS[ChatMode.FAST.value])

    def _build_messages(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]],
        include_system: bool = True
    ) -> List[Dict[str, str]]:
        """Build an OpenAI-style message list: system prompt, recent history, user turn."""
        messages = []
        if include_system:
            messages.append({"role": "system", "content": SYSTEM_PROMPTS.get(mode, SYSTEM_PROMPTS["fast"])})
        messages.extend(
            {"role": turn["role"], "content": turn["content"]}
            for turn in history[-HISTORY_WINDOW:]
        )
        messages.append({"role": "user", "content": message})
        return messages

    def _normalize(self, content: Optional[str], mode: str, model: str) -> NormalizedResponse:
        """Turn raw provider text into a normalized response.

        A ``<think>...</think>`` block, when present, becomes the reasoning.
        """
        if content is None or not content.strip():
            raise MalformedResponseError(
                f"{self.provider_name} returned an empty answer",
                provider=self.provider_name,
                error_type="empty_response"
            )

        reasoning = None
        match = _THINK_PATTERN.search(content)
        if match:
            reasoning = match.group(1).strip() or None
            content = _THINK_PATTERN.sub("", content)

        content = content.strip()
        if not content:
            raise MalformedResponseError(
                f"{self.provider_name} returned only a reasoning trace",
                provider=self.provider_name,
                error_type="empty_response"
            )

        return NormalizedResponse(
            content=content,
            reasoning=reasoning,
            mode=mode,
            model=f"{self.provider_name}:{model}"
        )

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """POST a JSON payload and decode the JSON answer, mapping failures to provider errors."""
        try:
            response = await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"{self.provider_name} request timed out: {e}",
                provider=self.provider_name,
                error_type="timeout"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                f"{self.provider_name} connection error: {e}",
                provider=self.provider_name,
                error_type="connection"
            ) from e

        self._raise_for_status(response)

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponseError(
                f"{self.provider_name} returned invalid JSON",
                provider=self.provider_name,
                error_type="invalid_json"
            ) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map a non-success HTTP status to the matching provider error."""
        if response.is_success:
            return

        status = response.status_code
        detail = self._error_detail(response)
        message = f"{self.provider_name} HTTP {status}: {detail}"

        if status in (401, 403):
            raise AuthError(message, provider=self.provider_name, error_type="authentication")
        if status == 429:
            raise RateLimitError(message, provider=self.provider_name, error_type="rate_limit")
        raise NetworkError(message, provider=self.provider_name, error_type=f"http_{status}")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase or "error"

        if isinstance(body, dict):
            error = body.get("error") or body.get("message")
            if isinstance(error, dict):
                error = error.get("message")
            if error:
                return str(error)
        return response.reason_phrase or "error"

    def _log_request(self, model: str, message_count: int, mode: str) -> None:
        """Log request details for monitoring."""
        logger.info(
            f"Request to {self.provider_name}",
            extra={
                "provider": self.provider_name,
                "model": model,
                "mode": mode,
                "message_count": message_count,
            }
        )

    def _log_response(self, response: NormalizedResponse) -> None:
        """Log response details for monitoring."""
        logger.info(
            f"Response from {self.provider_name}",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "content_length": len(response.content),
                "has_reasoning": response.reasoning is not None,
            }
        )

    def _log_error(self, error: ProviderError, context: Dict[str, Any]) -> None:
        """Log error details for debugging."""
        logger.warning(
            f"Provider error in {self.provider_name}",
            extra={
                "provider": self.provider_name,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "context": context
            }
        )

    async def aclose(self) -> None:
        """Close the HTTP client when this adapter owns it."""
        if self._owns_client:
            await self._client.aclose()


def split_models(models: Dict[str, str]) -> Tuple[str, ...]:
    """Distinct model identifiers of a per-mode model table, in mode order."""
    seen = []
    for model in models.values():
        if model not in seen:
            seen.append(model)
    return tuple(seen)
