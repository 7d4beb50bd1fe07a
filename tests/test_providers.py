from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from translation_watcher_ai.config import ProviderConfig
from translation_watcher_ai.errors import ConfigurationError, ProviderError
from translation_watcher_ai.providers import available_providers, create_provider
from translation_watcher_ai.providers.anthropic import AnthropicProvider
from translation_watcher_ai.providers.local import LocalProvider
from translation_watcher_ai.providers.openai import OpenAIProvider


class RecordingCreate:
    def __init__(self, result) -> None:
        self.result = result
        self.kwargs: dict = {}

    async def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self.result


def _mock_local(handler) -> LocalProvider:
    return LocalProvider(
        {"model": "mistral", "temperature": 0.2},
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_openai_translate_uses_chat_completions() -> None:
    create = RecordingCreate(
        SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=' "Bonjour" '))])
    )
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    provider = OpenAIProvider({"api_key": "sk-test", "model": "quality"}, client=client)

    result = await provider.translate("  Hello ", "fr", context="Related: bye: Bye")

    assert result == "Bonjour"
    assert create.kwargs["model"] == "gpt-4o"
    system, user = create.kwargs["messages"]
    assert "fr" in system["content"]
    assert 'Text: "Hello"' in user["content"]
    assert "Context: Related: bye: Bye" in user["content"]


@pytest.mark.asyncio
async def test_openai_empty_output_is_an_error() -> None:
    create = RecordingCreate(SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=""))]))
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    provider = OpenAIProvider({"api_key": "sk-test"}, client=client)

    with pytest.raises(ProviderError, match="No translation received"):
        await provider.translate("Hello", "fr")


@pytest.mark.asyncio
async def test_anthropic_translate_joins_text_blocks() -> None:
    create = RecordingCreate(
        SimpleNamespace(content=[SimpleNamespace(type="text", text="Hallo "), SimpleNamespace(type="text", text="Welt")])
    )
    provider = AnthropicProvider(
        {"api_key": "sk-ant", "preserve_formatting": False},
        client=SimpleNamespace(messages=SimpleNamespace(create=create)),
    )

    assert await provider.translate("Hello world", "de") == "Hallo Welt"
    assert "placeholders" not in create.kwargs["system"]
    assert create.kwargs["model"] == "claude-3-5-haiku-latest"


@pytest.mark.asyncio
async def test_blank_input_and_bad_language_are_rejected() -> None:
    provider = OpenAIProvider({"api_key": "sk-test"}, client=SimpleNamespace())

    with pytest.raises(ProviderError, match="non-empty string"):
        await provider.translate("   ", "fr")
    with pytest.raises(ProviderError, match="Invalid target language code"):
        await provider.translate("Hello", "French")
    with pytest.raises(ProviderError, match="not supported"):
        await provider.translate("Hello", "xx")


@pytest.mark.asyncio
async def test_local_provider_posts_generate_request() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": '"Hola"\nExplanation: greeting'})

    provider = _mock_local(handler)

    assert await provider.translate("Hello", "es") == "Hola"
    assert seen["url"] == "http://localhost:11434/api/generate"
    assert seen["body"]["model"] == "mistral"
    assert seen["body"]["stream"] is False
    assert seen["body"]["options"]["temperature"] == 0.2
    # Local models accept any well-formed code
    assert await provider.translate("Hello", "xx") == "Hola"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("handler", "message"),
    [
        (lambda request: httpx.Response(500, text="boom"), "status 500"),
        (lambda request: httpx.Response(200, text="not json"), "invalid JSON"),
        (lambda request: httpx.Response(200, json={"response": "  "}), "No translation received"),
    ],
)
async def test_local_provider_errors(handler, message: str) -> None:
    with pytest.raises(ProviderError, match=message):
        await _mock_local(handler).translate("Hello", "es")


@pytest.mark.asyncio
async def test_local_provider_connection_failures() -> None:
    def timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError, match="timed out"):
        await _mock_local(timeout).translate("Hello", "es")
    with pytest.raises(ProviderError, match="Failed to connect"):
        await _mock_local(refused).translate("Hello", "es")


@pytest.mark.asyncio
async def test_local_provider_lists_models() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": "llama2"}, {"name": "mistral"}]})

    assert await _mock_local(handler).list_models() == ["llama2", "mistral"]


def test_validate_config_ranges() -> None:
    openai = OpenAIProvider()
    anthropic = AnthropicProvider()
    local = LocalProvider()

    assert openai.validate_config({"api_key": "sk", "temperature": 2, "max_tokens": 4000})
    assert not openai.validate_config({"temperature": 0.3})
    assert not openai.validate_config({"api_key": "sk", "max_tokens": 4001})
    assert not anthropic.validate_config({"api_key": "sk", "temperature": 1.5})
    assert anthropic.validate_config({"api_key": "sk", "max_tokens": 4096})
    assert local.validate_config({"timeout": 30, "max_tokens": 8192})
    assert not local.validate_config({"timeout": 120})


def test_factory_builds_configured_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")

    provider = create_provider(ProviderConfig(type="anthropic"), preserve_formatting=False)

    assert isinstance(provider, AnthropicProvider)
    assert provider.get_config()["api_key"] == "sk-ant-env"
    assert provider.get_config()["preserve_formatting"] is False
    assert isinstance(create_provider(ProviderConfig(type="local")), LocalProvider)
    assert available_providers() == ["openai", "anthropic", "local"]


def test_factory_rejects_unknown_type() -> None:
    config = ProviderConfig.model_construct(type="custom")

    with pytest.raises(ConfigurationError, match="Unsupported provider type: custom"):
        create_provider(config)
