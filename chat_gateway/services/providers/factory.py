"""Factory for creating provider adapters and their routing configuration."""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from chat_gateway.config.models import (
    AppConfig,
    DEFAULT_PROVIDER_TABLE,
    ProviderDefaults,
    ProviderName,
    ProvidersConfig,
)
from chat_gateway.models.context import ProviderConfig
from chat_gateway.models.errors import ConfigurationError
from chat_gateway.models.interfaces import IProviderAdapter
from .cohere import CohereAdapter
from .huggingface import HuggingFaceAdapter
from .ollama import OllamaAdapter, probe_ollama
from .openai_compatible import OpenAICompatibleAdapter


logger = logging.getLogger(__name__)

AdapterBuilder = Callable[[ProvidersConfig, ProviderDefaults], IProviderAdapter]


class ProviderAdapterFactory:
    """Registry of adapter builders keyed by provider id."""

    _builders: Dict[str, AdapterBuilder] = {
        ProviderName.GROQ.value: lambda p, d: OpenAICompatibleAdapter(
            "groq", api_key=p.groq_api_key, timeout=d.timeout
        ),
        ProviderName.TOGETHER.value: lambda p, d: OpenAICompatibleAdapter(
            "together", api_key=p.together_api_key, timeout=d.timeout
        ),
        ProviderName.OPENAI.value: lambda p, d: OpenAICompatibleAdapter(
            "openai", api_key=p.openai_api_key, timeout=d.timeout
        ),
        ProviderName.COHERE.value: lambda p, d: CohereAdapter(
            api_key=p.cohere_api_key, timeout=d.timeout
        ),
        ProviderName.HUGGINGFACE.value: lambda p, d: HuggingFaceAdapter(
            token=p.huggingface_token, timeout=d.timeout
        ),
        ProviderName.OLLAMA.value: lambda p, d: OllamaAdapter(
            base_url=p.ollama_url, timeout=d.timeout
        ),
    }

    @classmethod
    def register_adapter(cls, provider_name: str, builder: AdapterBuilder) -> None:
        """Register a builder for a provider id, replacing any existing one."""
        cls._builders[provider_name] = builder
        logger.info(f"Registered provider adapter: {provider_name}")

    @classmethod
    def get_registered_providers(cls) -> List[str]:
        """Get provider ids with a registered builder."""
        return list(cls._builders.keys())

    @classmethod
    def create_adapter(
        cls,
        provider_name: str,
        providers: ProvidersConfig,
        defaults: ProviderDefaults
    ) -> IProviderAdapter:
        """Create the adapter for ``provider_name``."""
        if provider_name not in cls._builders:
            raise ConfigurationError(
                f"Unknown provider: {provider_name}. "
                f"Available providers: {cls.get_registered_providers()}",
                config_key=provider_name
            )

        try:
            adapter = cls._builders[provider_name](providers, defaults)
        except (ValueError, TypeError, httpx.HTTPError) as e:
            logger.error(f"Failed to create {provider_name} adapter: {e}")
            raise ConfigurationError(
                f"Failed to initialize {provider_name} adapter: {e}",
                config_key=provider_name
            ) from e

        logger.info(f"Created {provider_name} adapter")
        return adapter


async def resolve_enabled(providers: ProvidersConfig, probe_local: bool = True) -> Dict[str, bool]:
    """Decide once, at startup, which providers can be used."""
    if providers.ollama_enabled is not None:
        ollama_enabled = providers.ollama_enabled
    elif probe_local:
        ollama_enabled = await probe_ollama(providers.ollama_url)
    else:
        ollama_enabled = False

    return {
        ProviderName.GROQ.value: bool(providers.groq_api_key),
        ProviderName.HUGGINGFACE.value: bool(providers.huggingface_token) or providers.huggingface_enabled,
        ProviderName.TOGETHER.value: bool(providers.together_api_key),
        ProviderName.COHERE.value: bool(providers.cohere_api_key),
        ProviderName.OLLAMA.value: ollama_enabled,
        ProviderName.OPENAI.value: bool(providers.openai_api_key),
    }


def build_provider_configs(
    enabled: Dict[str, bool],
    adapters: Optional[Dict[str, IProviderAdapter]] = None,
    table: Optional[Dict[ProviderName, ProviderDefaults]] = None
) -> List[ProviderConfig]:
    """Build the static provider configurations from the default table.

    An adapter that implements a health check becomes the provider's
    recovery probe.
    """
    adapters = adapters or {}
    table = table or DEFAULT_PROVIDER_TABLE

    configs = []
    for name, defaults in table.items():
        provider_id = name.value
        adapter = adapters.get(provider_id)
        health_check = adapter.health_check if adapter is not None and adapter.supports_health_check else None
        configs.append(ProviderConfig(
            name=provider_id,
            priority=defaults.priority,
            enabled=enabled.get(provider_id, False),
            max_retries=defaults.max_retries,
            timeout=defaults.timeout,
            health_check=health_check,
        ))
    return configs


async def build_providers(
    config: AppConfig,
    probe_local: bool = True
) -> Tuple[List[ProviderConfig], Dict[str, IProviderAdapter]]:
    """Create adapters for every enabled provider and their routing configuration."""
    enabled = await resolve_enabled(config.providers, probe_local=probe_local)

    adapters: Dict[str, IProviderAdapter] = {}
    for name, defaults in DEFAULT_PROVIDER_TABLE.items():
        if enabled.get(name.value):
            adapters[name.value] = ProviderAdapterFactory.create_adapter(name.value, config.providers, defaults)

    disabled = [name for name, is_enabled in enabled.items() if not is_enabled]
    if disabled:
        logger.info(f"Providers disabled for missing credentials or endpoint: {', '.join(disabled)}")

    return build_provider_configs(enabled, adapters), adapters
