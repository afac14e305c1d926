"""Adapter for providers that speak the OpenAI chat completions protocol."""

import logging
from typing import Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from chat_gateway.models.errors import (
    AuthError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    RateLimitError,
)
from chat_gateway.models.responses import NormalizedResponse
from .base import BaseProviderAdapter, split_models


logger = logging.getLogger(__name__)


# Base URL and per-mode model of every OpenAI-compatible provider.
OPENAI_COMPATIBLE_PRESETS: Dict[str, Dict[str, object]] = {
    "groq": {
        "base_url": "https://api.groq.com/openai/v1",
        "models": {"fast": "llama-3.1-8b-instant", "deep": "llama-3.1-70b-versatile"},
    },
    "together": {
        "base_url": "https://api.together.xyz/v1",
        "models": {"fast": "meta-llama/Llama-2-7b-chat-hf", "deep": "meta-llama/Llama-2-13b-chat-hf"},
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "models": {"fast": "gpt-3.5-turbo", "deep": "gpt-4"},
    },
}


class OpenAICompatibleAdapter(BaseProviderAdapter):
    """Adapter built on the OpenAI SDK, pointed at any compatible endpoint."""

    def __init__(
        self,
        name: str,
        api_key: str,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        models: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the adapter from a preset, overridable per field."""
        super().__init__(name, timeout=timeout, client=client)
        preset = OPENAI_COMPATIBLE_PRESETS.get(name, {})
        self.base_url = base_url or preset.get("base_url")
        self.models: Dict[str, str] = dict(models or preset.get("models") or {})
        if not self.base_url or not self.models:
            raise ValueError(f"No endpoint preset for provider {name}; pass base_url and models")

        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,  # Retries belong to the orchestrator
            http_client=self._client,
        )

        logger.info(f"Initialized {name} adapter at {self.base_url}")

    @property
    def available_models(self) -> List[str]:
        """Models used for the fast and deep modes."""
        return list(split_models(self.models))

    @property
    def supports_health_check(self) -> bool:
        return True

    async def execute(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> NormalizedResponse:
        """Answer through the chat completions endpoint."""
        model = self.models.get(mode, self.models["fast"])
        messages = self._build_messages(message, mode, history)
        parameters = self._mode_parameters(mode)

        self._log_request(model, len(messages), mode)

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                **parameters
            )
        except openai.APIError as e:
            error = self._translate_error(e)
            self._log_error(error, {"model": model, "message_count": len(messages)})
            raise error from e

        normalized = self._normalize(self._extract_content(response), mode, model)
        self._log_response(normalized)
        return normalized

    async def health_check(self) -> bool:
        """List models as a cheap authenticated probe."""
        try:
            await self.client.models.list()
            return True
        except openai.APIError as e:
            logger.warning(f"{self.provider_name} health check failed: {e}")
            return False

    def _extract_content(self, response: ChatCompletion) -> Optional[str]:
        if not response.choices:
            raise MalformedResponseError(
                f"{self.provider_name} returned no choices",
                provider=self.provider_name,
                error_type="invalid_response"
            )
        return response.choices[0].message.content

    def _translate_error(self, error: openai.APIError) -> ProviderError:
        """Map OpenAI SDK exceptions onto provider errors."""
        name = self.provider_name

        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return AuthError(f"{name} authentication error: {error}", provider=name, error_type="authentication")
        if isinstance(error, openai.RateLimitError):
            return RateLimitError(f"{name} rate limit exceeded: {error}", provider=name, error_type="rate_limit")
        if isinstance(error, openai.APITimeoutError):
            return NetworkError(f"{name} API timeout: {error}", provider=name, error_type="timeout")
        if isinstance(error, openai.APIConnectionError):
            return NetworkError(f"{name} connection error: {error}", provider=name, error_type="connection")
        if isinstance(error, openai.APIResponseValidationError):
            return MalformedResponseError(
                f"{name} returned an unexpected response: {error}",
                provider=name,
                error_type="invalid_response"
            )
        if isinstance(error, openai.APIStatusError):
            return NetworkError(
                f"{name} HTTP {error.status_code}: {error.message}",
                provider=name,
                error_type=f"http_{error.status_code}"
            )
        return NetworkError(f"{name} API error: {error}", provider=name, error_type="api_error")
