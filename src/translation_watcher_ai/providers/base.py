"""
Base classes for translation providers.

Defines the abstract interface that all translation providers must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from translation_watcher_ai.errors import ProviderError
from translation_watcher_ai.languages import is_valid_language_code

# Languages the hosted LLM providers handle well
COMMON_LANGUAGES = [
    "en", "es", "fr", "de", "it", "pt", "ru", "ja", "ko", "zh", "ar", "hi", "th", "vi",
    "nl", "pl", "tr", "sv", "da", "no", "fi", "cs", "hu", "ro", "bg", "hr", "sk", "sl",
    "et", "lv", "lt", "mt", "el", "he", "id", "ms", "tl", "bn", "ur", "fa", "uk", "sr",
    "ca", "eu", "gl", "is", "ga", "cy", "sw", "af", "ta", "te",
    "zh-CN", "zh-TW", "zh-HK", "en-US", "en-GB", "es-ES", "es-MX", "fr-FR", "fr-CA",
    "de-DE", "de-AT", "de-CH", "it-IT", "pt-PT", "pt-BR", "ru-RU", "ja-JP", "ko-KR",
]  # fmt: skip


@dataclass
class ProviderCapabilities:
    """What a provider supports."""

    supports_context: bool = True
    supports_batch_translation: bool = False
    max_text_length: int = 4000
    rate_limit_per_minute: int = 60


class TranslationProvider(ABC):
    """
    Abstract base class for translation providers.

    All providers (OpenAI, Anthropic, local models) must implement this interface.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize provider.

        Args:
            config: Provider configuration (api_key, model, temperature, ...).
        """
        self._config = dict(config or {})

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification."""
        ...

    @abstractmethod
    async def translate(
        self,
        text: str,
        target_language: str,
        context: str | None = None,
    ) -> str:
        """
        Translate a single text.

        Args:
            text: Source text. Blank text is a caller error.
            target_language: Target language code.
            context: Optional hint such as the parent or sibling values.

        Returns:
            The translated text.
        """
        ...

    @abstractmethod
    def validate_config(self, config: dict[str, Any]) -> bool:
        """Check whether ``config`` is usable by this provider."""
        ...

    def get_supported_languages(self) -> list[str]:
        """Language codes this provider accepts. Empty means any valid code."""
        return list(COMMON_LANGUAGES)

    def get_config(self) -> dict[str, Any]:
        """Copy of the provider configuration."""
        return dict(self._config)

    def capabilities(self) -> ProviderCapabilities:
        """Provider capabilities."""
        return ProviderCapabilities()

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None

    def build_prompt(self, text: str, target_language: str, context: str | None = None) -> str:
        """Build the user prompt for a translation request."""
        prompt = f"Translate the following text to {target_language}:\n\n"

        if context:
            prompt += f"Context: {context}\n\n"

        prompt += f'Text: "{text}"\n\n'
        prompt += "Translation:"

        return prompt

    def system_prompt(self, target_language: str) -> str:
        """System prompt shared by the chat-style providers."""
        prompt = (
            f"You are a professional translator for software user interfaces. "
            f"Translate the user's text to {target_language}. "
            "Respond with the translation only, without quotes or explanations."
        )
        if self._config.get("preserve_formatting", True):
            prompt += (
                " Keep placeholders such as {name}, {{count}}, %s and HTML tags unchanged."
            )
        return prompt

    def sanitize_input(self, text: str) -> str:
        """
        Validate and trim the input text.

        Raises:
            ProviderError: If text is empty or whitespace-only.
        """
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("Input text must be a non-empty string")

        return text.strip()

    def validate_target_language(self, language: str) -> None:
        """
        Check the target language code.

        Raises:
            ProviderError: If the code is malformed or not supported.
        """
        if not is_valid_language_code(language):
            raise ProviderError(f"Invalid target language code: {language}")

        supported = self.get_supported_languages()
        if supported and language not in supported:
            raise ProviderError(f"Language {language} is not supported by {self.name}")

    @staticmethod
    def clean_translation(content: str) -> str:
        """Strip whitespace and wrapping quotes the model may add."""
        cleaned = content.strip()
        if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
            cleaned = cleaned[1:-1].strip()
        return cleaned
