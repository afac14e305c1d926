"""Tests for the shipped provider adapters against mocked HTTP transports."""

import json

import httpx
import pytest

from chat_gateway.config.models import DEFAULT_PROVIDER_TABLE, ProviderName, ProvidersConfig
from chat_gateway.models.errors import (
    AuthError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
)
from chat_gateway.services.providers import (
    CohereAdapter,
    HuggingFaceAdapter,
    OllamaAdapter,
    OpenAICompatibleAdapter,
    ProviderAdapterFactory,
    build_provider_configs,
    probe_ollama,
    resolve_enabled,
)

from .conftest import ScriptedAdapter


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "llama-3.1-8b-instant",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


class TestOpenAICompatibleAdapter:
    @pytest.mark.asyncio
    async def test_execute_sends_mode_parameters(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("Hi there"))

        adapter = OpenAICompatibleAdapter("groq", api_key="gsk_test", client=mock_client(handler))
        history = [{"role": "user", "content": "earlier"}, {"role": "assistant", "content": "reply"}]

        response = await adapter.execute("Hello", "deep", history)

        assert seen["url"] == "https://api.groq.com/openai/v1/chat/completions"
        assert seen["body"]["model"] == "llama-3.1-70b-versatile"
        assert seen["body"]["max_tokens"] == 500
        assert seen["body"]["temperature"] == 0.8
        assert seen["body"]["messages"][0]["role"] == "system"
        assert seen["body"]["messages"][-1] == {"role": "user", "content": "Hello"}
        assert len(seen["body"]["messages"]) == 4
        assert response.content == "Hi there"
        assert response.model == "groq:llama-3.1-70b-versatile"
        assert response.mode == "deep"

    @pytest.mark.asyncio
    async def test_reasoning_extracted_from_think_block(self) -> None:
        def handler(request):
            return httpx.Response(200, json=completion("<think>compare options</think>Use a queue."))

        adapter = OpenAICompatibleAdapter("together", api_key="key", client=mock_client(handler))

        response = await adapter.execute("How to buffer work?", "fast", [])

        assert response.content == "Use a queue."
        assert response.reasoning == "compare options"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, error_class", [
        (401, AuthError),
        (403, AuthError),
        (429, RateLimitError),
        (500, NetworkError),
        (503, NetworkError),
    ])
    async def test_status_errors_mapped(self, status, error_class) -> None:
        def handler(request):
            return httpx.Response(status, json={"error": {"message": "nope"}})

        adapter = OpenAICompatibleAdapter("openai", api_key="sk-test", client=mock_client(handler))

        with pytest.raises(error_class) as exc_info:
            await adapter.execute("Hello", "fast", [])

        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = OpenAICompatibleAdapter("groq", api_key="gsk_test", client=mock_client(handler))

        with pytest.raises(NetworkError):
            await adapter.execute("Hello", "fast", [])

    @pytest.mark.asyncio
    async def test_empty_answer_is_malformed(self) -> None:
        def handler(request):
            return httpx.Response(200, json=completion(""))

        adapter = OpenAICompatibleAdapter("groq", api_key="gsk_test", client=mock_client(handler))

        with pytest.raises(MalformedResponseError):
            await adapter.execute("Hello", "fast", [])

    def test_unknown_provider_needs_endpoint(self) -> None:
        with pytest.raises(ValueError):
            OpenAICompatibleAdapter("mystery", api_key="key")


class TestCohereAdapter:
    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"text": "Bonjour"})

        adapter = CohereAdapter(api_key="co-key", client=mock_client(handler))
        history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

        response = await adapter.execute("Translate hello", "fast", history)

        assert seen["auth"] == "Bearer co-key"
        assert seen["body"]["model"] == "command-light"
        assert seen["body"]["chat_history"] == [
            {"role": "USER", "message": "hi"},
            {"role": "CHATBOT", "message": "hello"},
        ]
        assert response.content == "Bonjour"
        assert response.model == "cohere:command-light"

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self) -> None:
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        adapter = CohereAdapter(api_key="co-key", client=mock_client(handler))

        with pytest.raises(MalformedResponseError):
            await adapter.execute("Hello", "fast", [])

    @pytest.mark.asyncio
    async def test_missing_text_is_malformed(self) -> None:
        def handler(request):
            return httpx.Response(200, json={"generation_id": "abc"})

        adapter = CohereAdapter(api_key="co-key", client=mock_client(handler))

        with pytest.raises(MalformedResponseError):
            await adapter.execute("Hello", "fast", [])


class TestOllamaAdapter:
    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Local answer"}})

        adapter = OllamaAdapter(base_url="http://ollama:11434/", client=mock_client(handler))

        response = await adapter.execute("Hello", "fast", [])

        assert seen["path"] == "/api/chat"
        assert seen["body"]["model"] == "llama3:8b"
        assert seen["body"]["stream"] is False
        assert response.model == "ollama:llama3:8b"

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        adapter = OllamaAdapter(client=mock_client(handler))

        assert adapter.supports_health_check is True
        assert await adapter.health_check() is True

    @pytest.mark.asyncio
    async def test_probe_unreachable(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert await probe_ollama("http://localhost:11434", client=mock_client(handler)) is False


class TestHuggingFaceAdapter:
    @pytest.mark.asyncio
    async def test_falls_through_models_until_one_answers(self) -> None:
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if len(calls) == 1:
                return httpx.Response(503, json={"error": "Model is loading"})
            return httpx.Response(200, json=[{"generated_text": "Blenderbot says hello"}])

        adapter = HuggingFaceAdapter(token="hf_test", client=mock_client(handler))

        response = await adapter.execute("Hello there", "fast", [])

        assert calls == ["/models/microsoft/DialoGPT-medium", "/models/facebook/blenderbot-400M-distill"]
        assert response.content == "Blenderbot says hello"
        assert response.model == "huggingface:facebook/blenderbot-400M-distill"

    @pytest.mark.asyncio
    async def test_raises_last_error_when_no_model_answers(self) -> None:
        def handler(request):
            return httpx.Response(200, json=[{"generated_text": "ok"}])

        adapter = HuggingFaceAdapter(client=mock_client(handler))

        with pytest.raises(MalformedResponseError):
            await adapter.execute("Hello there", "deep", [])

    @pytest.mark.asyncio
    async def test_auth_error_stops_immediately(self) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": "Invalid token"})

        adapter = HuggingFaceAdapter(token="hf_bad", client=mock_client(handler))

        with pytest.raises(AuthError):
            await adapter.execute("Hello there", "fast", [])
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_dialogpt_prompt_strips_context(self) -> None:
        def handler(request):
            body = json.loads(request.content)
            assert body["inputs"] == "Human: hi Bot: hello Human: Hello there Bot:"
            return httpx.Response(200, json=[{"generated_text": "Bot: Nice to meet you"}])

        adapter = HuggingFaceAdapter(client=mock_client(handler))
        history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

        response = await adapter.execute("Hello there", "fast", history)

        assert response.content == "Nice to meet you"

    @pytest.mark.asyncio
    async def test_no_models_for_mode_is_malformed(self) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[{"generated_text": "never asked"}])

        adapter = HuggingFaceAdapter(models={"fast": [], "deep": []}, client=mock_client(handler))

        with pytest.raises(MalformedResponseError, match="No models configured"):
            await adapter.execute("Hello there", "deep", [])
        assert calls == []


class TestFactory:
    @pytest.mark.asyncio
    async def test_enablement_from_credentials(self) -> None:
        providers = ProvidersConfig(groq_api_key="gsk_0123456789", ollama_enabled=False)

        enabled = await resolve_enabled(providers, probe_local=False)

        assert enabled["groq"] is True
        assert enabled["huggingface"] is False
        assert enabled["ollama"] is False
        assert enabled["openai"] is False

    @pytest.mark.asyncio
    async def test_huggingface_enabled_without_token(self) -> None:
        enabled = await resolve_enabled(ProvidersConfig(huggingface_enabled=True), probe_local=False)
        assert enabled["huggingface"] is True

    def test_provider_configs_follow_default_table(self) -> None:
        configs = build_provider_configs({"groq": True})

        by_name = {config.name: config for config in configs}
        assert by_name["groq"].enabled is True
        assert by_name["groq"].priority == 1
        assert by_name["huggingface"].max_retries == 3
        assert by_name["ollama"].timeout == 120.0
        assert by_name["openai"].enabled is False

    @pytest.mark.asyncio
    async def test_adapter_health_check_becomes_probe(self) -> None:
        defaults = DEFAULT_PROVIDER_TABLE[ProviderName.OLLAMA]
        adapter = ProviderAdapterFactory.create_adapter("ollama", ProvidersConfig(), defaults)

        configs = build_provider_configs({"ollama": True}, {"ollama": adapter})

        ollama = next(config for config in configs if config.name == "ollama")
        assert ollama.health_check is not None
        await adapter.aclose()

    def test_registered_builder_is_used(self, monkeypatch) -> None:
        monkeypatch.setattr(ProviderAdapterFactory, "_builders", dict(ProviderAdapterFactory._builders))
        adapter = ScriptedAdapter("mistral")

        ProviderAdapterFactory.register_adapter("mistral", lambda providers, defaults: adapter)

        assert "mistral" in ProviderAdapterFactory.get_registered_providers()
        created = ProviderAdapterFactory.create_adapter(
            "mistral", ProvidersConfig(), DEFAULT_PROVIDER_TABLE[ProviderName.GROQ]
        )
        assert created is adapter

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            ProviderAdapterFactory.create_adapter(
                "mistral", ProvidersConfig(), DEFAULT_PROVIDER_TABLE[ProviderName.GROQ]
            )

    def test_builder_failure_becomes_configuration_error(self, monkeypatch) -> None:
        monkeypatch.setattr(ProviderAdapterFactory, "_builders", dict(ProviderAdapterFactory._builders))

        def broken(providers, defaults):
            raise ValueError("missing endpoint")

        ProviderAdapterFactory.register_adapter("mistral", broken)

        with pytest.raises(ConfigurationError, match="missing endpoint"):
            ProviderAdapterFactory.create_adapter(
                "mistral", ProvidersConfig(), DEFAULT_PROVIDER_TABLE[ProviderName.GROQ]
            )
