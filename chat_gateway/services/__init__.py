"""Services package."""

from .cache import ResponseCache
from .chat_service import ChatService
from .providers import ProviderHealthRegistry, RecoveryScheduler, build_providers

__all__ = [
    "ChatService",
    "ProviderHealthRegistry",
    "RecoveryScheduler",
    "ResponseCache",
    "build_providers",
]
