"""
Translation provider abstraction layer.

Supports multiple backends:
- OpenAI: chat completions via the openai SDK
- Anthropic: Claude messages via the anthropic SDK
- Local: Ollama-compatible HTTP endpoint
"""

from translation_watcher_ai.providers.base import ProviderCapabilities, TranslationProvider
from translation_watcher_ai.providers.factory import (
    available_providers,
    create_provider,
)

__all__ = [
    "TranslationProvider",
    "ProviderCapabilities",
    "available_providers",
    "create_provider",
]
