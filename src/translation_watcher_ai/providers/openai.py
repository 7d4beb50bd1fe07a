"""
OpenAI translation provider.

Uses the OpenAI chat-completions API. Any OpenAI-compatible endpoint can be
targeted through ``base_url``.
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from translation_watcher_ai.errors import ProviderError
from translation_watcher_ai.providers.base import TranslationProvider


class OpenAIProvider(TranslationProvider):
    """
    OpenAI translation provider.

    Retries are left to the orchestrator, so the SDK client is created with
    ``max_retries=0`` unless configured otherwise.
    """

    # Model aliases for convenience
    MODELS = {
        "default": "gpt-4o-mini",
        "fast": "gpt-4o-mini",
        "quality": "gpt-4o",
    }

    def __init__(self, config: dict[str, Any] | None = None, client: AsyncOpenAI | None = None):
        """
        Initialize OpenAI provider.

        Args:
            config: ``api_key``, ``model``, ``temperature``, ``max_tokens``,
                ``base_url``, ``timeout``, ``organization``.
            client: Preconfigured client, mainly for tests.
        """
        super().__init__(config)
        model = self._config.get("model") or "default"
        self._model_name = self.MODELS.get(model, model)
        self._client = client

    @property
    def name(self) -> str:
        """Provider name."""
        return "openai"

    @property
    def model(self) -> str:
        """Current model name."""
        return self._model_name

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Require an API key; bound temperature to 0-2 and max_tokens to 1-4000."""
        api_key = config.get("api_key")
        if not api_key or not isinstance(api_key, str):
            return False

        model = config.get("model")
        if model is not None and not isinstance(model, str):
            return False

        temperature = config.get("temperature")
        if temperature is not None and not 0 <= temperature <= 2:
            return False

        max_tokens = config.get("max_tokens")
        if max_tokens is not None and not 1 <= max_tokens <= 4000:
            return False

        return True

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._config.get("api_key"),
                base_url=self._config.get("base_url"),
                organization=self._config.get("organization"),
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
        Translate text via chat completions.

        Raises:
            ProviderError: On blank input, unsupported language or empty output.
        """
        sanitized = self.sanitize_input(text)
        self.validate_target_language(target_language)

        response = await self._get_client().chat.completions.create(
            model=self._model_name,
            messages=[
                {"role": "system", "content": self.system_prompt(target_language)},
                {
                    "role": "user",
                    "content": self.build_prompt(sanitized, target_language, context),
                },
            ],
            temperature=self._config.get("temperature", 0.3),
            max_tokens=self._config.get("max_tokens", 1000),
        )

        content = response.choices[0].message.content or ""
        translated = self.clean_translation(content)
        if not translated:
            raise ProviderError("No translation received from OpenAI")

        return translated

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
