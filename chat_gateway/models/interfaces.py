"""Abstract interfaces for provider adapters and the chat service."""

from abc import ABC, abstractmethod
from typing import Dict, List

from .requests import ChatRequest
from .responses import ChatResponse, NormalizedResponse


class IProviderAdapter(ABC):
    """Abstract interface for provider adapters.

    An adapter hides one provider's wire format. The orchestrator only calls
    ``execute`` and never inspects native payloads.
    """

    @abstractmethod
    async def execute(
        self,
        message: str,
        mode: str,
        history: List[Dict[str, str]]
    ) -> NormalizedResponse:
        """Answer ``message``.

        Raises:
            NetworkError, AuthError, RateLimitError, MalformedResponseError
        """
        pass

    async def health_check(self) -> bool:
        """Probe the provider. Adapters without a cheap probe keep the default."""
        raise NotImplementedError

    @property
    def supports_health_check(self) -> bool:
        """Whether ``health_check`` is implemented."""
        return False

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the name of this provider."""
        pass

    @property
    @abstractmethod
    def available_models(self) -> List[str]:
        """Get list of models this adapter may answer with."""
        pass

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None


class IChatService(ABC):
    """Abstract interface for the request orchestrator."""

    @abstractmethod
    async def handle(self, request: ChatRequest) -> ChatResponse:
        """Serve a chat request through the cache and the provider fallback chain."""
        pass
