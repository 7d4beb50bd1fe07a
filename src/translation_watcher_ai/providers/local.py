"""
Local model translation provider.

Talks to an Ollama-compatible ``/api/generate`` endpoint over HTTP.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from translation_watcher_ai.errors import ProviderError
from translation_watcher_ai.providers.base import ProviderCapabilities, TranslationProvider

DEFAULT_ENDPOINT = "http://localhost:11434/api/generate"


class LocalProvider(TranslationProvider):
    """
    Local model provider (Ollama and compatible servers).

    No API key is needed; any language code is accepted since support depends
    on the model being served.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        """
        Initialize local provider.

        Args:
            config: ``endpoint``, ``model``, ``temperature``, ``max_tokens``,
                ``timeout`` (seconds), ``headers``.
            client_factory: Builds the HTTP client, mainly for tests.
        """
        super().__init__(config)
        self._endpoint = self._config.get("endpoint") or DEFAULT_ENDPOINT
        self._model_name = self._config.get("model") or "llama2"
        timeout = self._config.get("timeout", 30.0)
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        )

    @property
    def name(self) -> str:
        """Provider name."""
        return "local"

    @property
    def model(self) -> str:
        """Current model name."""
        return self._model_name

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Check optional fields: temperature 0-2, max_tokens 1-8192, timeout 1-60 s."""
        endpoint = config.get("endpoint")
        if endpoint is not None and not isinstance(endpoint, str):
            return False

        model = config.get("model")
        if model is not None and not isinstance(model, str):
            return False

        temperature = config.get("temperature")
        if temperature is not None and not 0 <= temperature <= 2:
            return False

        max_tokens = config.get("max_tokens")
        if max_tokens is not None and not 1 <= max_tokens <= 8192:
            return False

        timeout = config.get("timeout")
        if timeout is not None and not 1 <= timeout <= 60:
            return False

        return True

    def get_supported_languages(self) -> list[str]:
        """Any well-formed language code; support depends on the served model."""
        return []

    def capabilities(self) -> ProviderCapabilities:
        """Local models have smaller context windows but no remote rate limit."""
        return ProviderCapabilities(max_text_length=8192, rate_limit_per_minute=100)

    def build_prompt(self, text: str, target_language: str, context: str | None = None) -> str:
        """Prompt tuned for small local models, which tend to add commentary."""
        prompt = (
            f"You are a professional translator. Translate the given text to {target_language}.\n\n"
            "IMPORTANT INSTRUCTIONS:\n"
            "- Provide ONLY the translation, nothing else\n"
            "- Do NOT include explanations, pronunciations, or extra context\n"
            "- Do NOT use quotes around the translation\n\n"
        )

        if context:
            prompt += f"Context: {context}\n\n"

        prompt += f"Text to translate: {text}\n\n"
        prompt += "Translation:"

        return prompt

    async def translate(
        self,
        text: str,
        target_language: str,
        context: str | None = None,
    ) -> str:
        """
        Translate text with the local model.

        Raises:
            ProviderError: On blank input, connection failures, bad status or empty output.
        """
        sanitized = self.sanitize_input(text)
        self.validate_target_language(target_language)

        payload = {
            "model": self._model_name,
            "prompt": self.build_prompt(sanitized, target_language, context),
            "stream": False,
            "options": {
                "temperature": self._config.get("temperature", 0.3),
                "num_predict": self._config.get("max_tokens", 1000),
            },
        }

        try:
            async with self._client_factory() as client:
                response = await client.post(
                    self._endpoint,
                    json=payload,
                    headers=self._config.get("headers") or None,
                )
        except httpx.TimeoutException as exc:
            raise ProviderError(
                "Local provider request timed out. Please check if the service is running."
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                "Failed to connect to local provider. Please check if the service is running."
            ) from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise ProviderError(f"Local endpoint returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Local endpoint returned invalid JSON") from exc

        raw = data.get("response") or data.get("text") or data.get("content") or ""
        translated = self.clean_translation_response(raw)
        if not translated:
            raise ProviderError("No translation received from local provider")

        return translated

    async def list_models(self) -> list[str]:
        """Models installed on the local server (Ollama ``/api/tags``)."""
        tags_url = self._endpoint.replace("/api/generate", "/api/tags")
        try:
            async with self._client_factory() as client:
                response = await client.get(tags_url, headers=self._config.get("headers") or None)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"Could not list local models: {exc}") from exc

        return [model["name"] for model in data.get("models", []) if "name" in model]

    def clean_translation_response(self, response: str) -> str:
        """Keep the first non-empty line without wrapping quotes."""
        for line in response.strip().splitlines():
            cleaned = self.clean_translation(line)
            if cleaned:
                return cleaned
        return ""
