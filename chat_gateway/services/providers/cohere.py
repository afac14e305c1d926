"""Cohere chat adapter."""

import logging
from typing import Dict, List, Optional

import httpx

from chat_gateway.models.errors import MalformedResponseError
from chat_gateway.models.responses import NormalizedResponse
from .base import HISTORY_WINDOW, SYSTEM_PROMPTS, BaseProviderAdapter, split_models


logger = logging.getLogger(__name__)

COHERE_CHAT_URL = "https://api.cohere.ai/v1/chat"
COHERE_MODELS = {"fast": "command-light", "deep": "command"}


class CohereAdapter(BaseProviderAdapter):
    """Adapter for the Cohere v1 chat endpoint."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        name: str = "cohere",
        url: str = COHERE_CHAT_URL,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(name, timeout=timeout, client=client)
        self._api_key = api_key
        self.url = url

    @property
    def available_models(self) -> List[str]:
        return list(split_models(COHERE_MODELS))

    async def execute(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> NormalizedResponse:
        model = COHERE_MODELS.get(mode, COHERE_MODELS["fast"])
        chat_history = [
            {"role": "USER" if turn["role"] == "user" else "CHATBOT", "message": turn["content"]}
            for turn in history[-HISTORY_WINDOW:]
        ]
        payload = {
            "model": model,
            "message": message,
            "preamble": SYSTEM_PROMPTS.get(mode, SYSTEM_PROMPTS["fast"]),
            "chat_history": chat_history,
            "k": 40,
            "p": 0.9,
            **self._mode_parameters(mode),
        }

        self._log_request(model, len(chat_history) + 1, mode)

        data = await self._post_json(
            self.url,
            payload,
            headers={"Authorization": f"Bearer {self._api_key}"}
        )
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "cohere returned an unexpected payload",
                provider=self.provider_name,
                error_type="invalid_response"
            )

        normalized = self._normalize(data.get("text"), mode, model)
        self._log_response(normalized)
        return normalized
