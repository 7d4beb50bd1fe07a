"""
Anthropic translation provider.

Uses the Anthropic messages API.
"""

from __future__ import annotations

from typing import Any

from anthropic import AsyncAnthropic

from translation_watcher_ai.errors import ProviderError
from translation_watcher_ai.providers.base import TranslationProvider


class AnthropicProvider(TranslationProvider):
    """Anthropic Claude translation provider."""

    # Model aliases for convenience
    MODELS = {
        "default": "claude-3-5-haiku-latest",
        "fast": "claude-3-5-haiku-latest",
        "quality": "claude-sonnet-4-5",
    }

    def __init__(
        self, config: dict[str, Any] | None = None, client: AsyncAnthropic | None = None
    ):
        """
        Initialize Anthropic provider.

        Args:
            config: ``api_key``, ``model``, ``temperature``, ``max_tokens``,
                ``base_url``, ``timeout``.
            client: Preconfigured client, mainly for tests.
        """
        super().__init__(config)
        model = self._config.get("model") or "default"
        self._model_name = self.MODELS.get(model, model)
        self._client = client

    @property
    def name(self) -> str:
        """Provider name."""
        return "anthropic"

    @property
    def model(self) -> str:
        """Current model name."""
        return self._model_name

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Require an API key; bound temperature to 0-1 and max_tokens to 1-4096."""
        api_key = config.get("api_key")
        if not api_key or not isinstance(api_key, str):
            return False

        model = config.get("model")
        if model is not None and not isinstance(model, str):
            return False

        temperature = config.get("temperature")
        if temperature is not None and not 0 <= temperature <= 1:
            return False

        max_tokens = config.get("max_tokens")
        if max_tokens is not None and not 1 <= max_tokens <= 4096:
            return False

        return True

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self._config.get("api_key"),
                base_url=self._config.get("base_url"),
                timeout=self._config.get("timeout", 30.0),
                max_retries=self._config.get("client_max_retries", 0),
            )
        return self._client

    async def translate(
        self,
        text: str,
        target_language: str,
        context: str | None = None,
    ) -> str:
        """
        Translate text via the messages API.

        Raises:
            ProviderError: On blank input, unsupported language or empty output.
        """
        sanitized = self.sanitize_input(text)
        self.validate_target_language(target_language)

        message = await self._get_client().messages.create(
            model=self._model_name,
            system=self.system_prompt(target_language),
            messages=[
                {
                    "role": "user",
                    "content": self.build_prompt(sanitized, target_language, context),
                }
            ],
            temperature=self._config.get("temperature", 0.3),
            max_tokens=self._config.get("max_tokens", 1000),
        )

        content = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        translated = self.clean_translation(content)
        if not translated:
            raise ProviderError("No translation received from Anthropic")

        return translated

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
