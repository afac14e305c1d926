"""Hugging Face Inference API adapter."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from chat_gateway.models.errors import AuthError, MalformedResponseError, ProviderError
from chat_gateway.models.responses import NormalizedResponse
from .base import BaseProviderAdapter


logger = logging.getLogger(__name__)

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models"

# Free conversational models, tried in order until one answers.
HF_MODELS: Dict[str, List[str]] = {
    "fast": [
        "microsoft/DialoGPT-medium",
        "facebook/blenderbot-400M-distill",
        "microsoft/DialoGPT-small",
    ],
    "deep": [
        "microsoft/DialoGPT-large",
        "facebook/blenderbot-1B-distill",
        "google/flan-t5-base",
    ],
}

# Shorter generations are treated as garbage rather than answers.
MIN_ANSWER_LENGTH = 5

_DIALOGPT_CONTEXT_TURNS = 5


class HuggingFaceAdapter(BaseProviderAdapter):
    """Adapter for the hosted inference API.

    A token is optional; anonymous access is heavily rate limited. A failing
    model moves on to the next one for the mode, and the last error is raised
    when none answers.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 60.0,
        name: str = "huggingface",
        base_url: str = HF_INFERENCE_URL,
        models: Optional[Dict[str, List[str]]] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(name, timeout=timeout, client=client)
        self._token = token
        self.base_url = base_url.rstrip("/")
        self.models = models or HF_MODELS

        if not token:
            logger.warning("HUGGINGFACE_TOKEN is not set, using anonymous access")

    @property
    def available_models(self) -> List[str]:
        seen = []
        for candidates in self.models.values():
            seen.extend(model for model in candidates if model not in seen)
        return seen

    async def execute(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> NormalizedResponse:
        candidates = self.models.get(mode) or self.models.get("fast")
        if not candidates:
            raise MalformedResponseError(
                f"No models configured for mode {mode}",
                provider=self.provider_name,
                error_type="no_models"
            )

        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        last_error: Optional[ProviderError] = None

        for model in candidates:
            self._log_request(model, len(history) + 1, mode)
            try:
                data = await self._post_json(
                    f"{self.base_url}/{model}",
                    self._build_payload(model, message, mode, history),
                    headers=headers
                )
                content = self._extract_content(model, data)
                if len(content.strip()) < MIN_ANSWER_LENGTH:
                    raise MalformedResponseError(
                        f"{model} returned a too short answer",
                        provider=self.provider_name,
                        error_type="short_response"
                    )
                normalized = self._normalize(content, mode, model)
            except AuthError:
                # Every model shares the credentials.
                raise
            except ProviderError as e:
                self._log_error(e, {"model": model})
                last_error = e
                continue

            self._log_response(normalized)
            return normalized

        raise last_error

    def _build_payload(
        self,
        model: str,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> Dict[str, Any]:
        max_tokens = 100 if mode == "fast" else 200
        options = {"wait_for_model": True, "use_cache": False}

        if "DialoGPT" in model:
            context = " ".join(
                f"{'Human' if turn['role'] == 'user' else 'Bot'}: {turn['content']}"
                for turn in history[-_DIALOGPT_CONTEXT_TURNS:]
            )
            prompt = f"{context} Human: {message} Bot:" if context else f"Human: {message} Bot:"
            return {
                "inputs": prompt,
                "parameters": {
                    "max_new_tokens": max_tokens,
                    "temperature": 0.7,
                    "do_sample": True,
                    "top_p": 0.9,
                    "return_full_text": False,
                },
                "options": options,
            }

        if "blenderbot" in model:
            return {
                "inputs": message,
                "parameters": {
                    "max_length": max_tokens,
                    "min_length": 10,
                    "do_sample": True,
                    "temperature": 0.7,
                },
                "options": options,
            }

        return {
            "inputs": f"Answer the question: {message}",
            "parameters": {"max_new_tokens": max_tokens, "temperature": 0.7},
            "options": options,
        }

    def _extract_content(self, model: str, data: Any) -> str:
        """Pull generated text out of the model-specific result shape."""
        if isinstance(data, list) and data and isinstance(data[0], dict):
            result = data[0]
            if result.get("generated_text") is not None:
                content = result["generated_text"]
                if "DialoGPT" in model:
                    content = content.split("Bot:")[-1].strip() or content
                return content
            content = result.get("translation_text") or result.get("summary_text")
        elif isinstance(data, dict):
            content = data.get("generated_text") or data.get("text")
        else:
            content = None

        if not isinstance(content, str):
            raise MalformedResponseError(
                f"{model} returned an unexpected payload",
                provider=self.provider_name,
                error_type="invalid_response"
            )
        return content
