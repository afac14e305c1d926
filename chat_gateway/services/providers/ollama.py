"""Adapter for a local Ollama server."""

import logging
from typing import Dict, List, Optional

import httpx

from chat_gateway.models.errors import MalformedResponseError
from chat_gateway.models.responses import NormalizedResponse
from .base import BaseProviderAdapter, split_models


logger = logging.getLogger(__name__)

OLLAMA_MODELS = {"fast": "llama3:8b", "deep": "llama3:70b"}


class OllamaAdapter(BaseProviderAdapter):
    """Adapter for Ollama's ``/api/chat`` endpoint.

    Reachability doubles as the health check, so recovery does not have to
    wait for a user request to discover the server is back.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        name: str = "ollama",
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(name, timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")

    @property
    def available_models(self) -> List[str]:
        return list(split_models(OLLAMA_MODELS))

    @property
    def supports_health_check(self) -> bool:
        return True

    async def execute(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> NormalizedResponse:
        model = OLLAMA_MODELS.get(mode, OLLAMA_MODELS["fast"])
        messages = self._build_messages(message, mode, history)
        parameters = self._mode_parameters(mode)

        self._log_request(model, len(messages), mode)

        data = await self._post_json(
            f"{self.base_url}/api/chat",
            {
                "model": model,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": parameters["temperature"],
                    "num_predict": parameters["max_tokens"],
                },
            }
        )

        content = None
        if isinstance(data, dict) and isinstance(data.get("message"), dict):
            content = data["message"].get("content")
        elif isinstance(data, dict) and "response" in data:
            content = data.get("response")
        else:
            raise MalformedResponseError(
                "ollama returned an unexpected payload",
                provider=self.provider_name,
                error_type="invalid_response"
            )

        normalized = self._normalize(content, mode, model)
        self._log_response(normalized)
        return normalized

    async def health_check(self) -> bool:
        """Check that the server answers ``GET /api/tags``."""
        return await probe_ollama(self.base_url, client=self._client, timeout=5.0)


async def probe_ollama(
    base_url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 3.0
) -> bool:
    """Return whether an Ollama server is reachable at ``base_url``."""
    url = f"{base_url.rstrip('/')}/api/tags"
    try:
        if client is not None:
            response = await client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as probe_client:
                response = await probe_client.get(url)
    except httpx.HTTPError as e:
        logger.debug(f"Ollama is not reachable at {base_url}: {e}")
        return False
    return response.is_success
