"""Provider adapters, health registry and recovery scheduling."""

from .base import BaseProviderAdapter
from .cohere import CohereAdapter
from .factory import ProviderAdapterFactory, build_provider_configs, build_providers, resolve_enabled
from .huggingface import HuggingFaceAdapter
from .ollama import OllamaAdapter, probe_ollama
from .openai_compatible import OpenAICompatibleAdapter
from .recovery import RecoveryScheduler
from .registry import ProviderHealthRegistry

__all__ = [
    "BaseProviderAdapter",
    "OpenAICompatibleAdapter",
    "CohereAdapter",
    "HuggingFaceAdapter",
    "OllamaAdapter",
    "probe_ollama",
    "ProviderAdapterFactory",
    "build_provider_configs",
    "build_providers",
    "resolve_enabled",
    "RecoveryScheduler",
    "ProviderHealthRegistry",
]
