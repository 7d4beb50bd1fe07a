"""
Translation provider factory.

Maps each provider type tag to its class. The set of providers is fixed.
"""

from __future__ import annotations

from typing import Any

from translation_watcher_ai.config import ProviderConfig, ProviderType
from translation_watcher_ai.errors import ConfigurationError
from translation_watcher_ai.providers.anthropic import AnthropicProvider
from translation_watcher_ai.providers.base import TranslationProvider
from translation_watcher_ai.providers.local import LocalProvider
from translation_watcher_ai.providers.openai import OpenAIProvider

_REGISTRY: dict[str, type[TranslationProvider]] = {
    ProviderType.OPENAI.value: OpenAIProvider,
    ProviderType.ANTHROPIC.value: AnthropicProvider,
    ProviderType.LOCAL.value: LocalProvider,
}


def available_providers() -> list[str]:
    """List registered provider type tags."""
    return list(_REGISTRY)


def create_provider(
    config: ProviderConfig,
    **extra: Any,
) -> TranslationProvider:
    """
    Create a translation provider instance.

    Args:
        config: Provider section of the settings.
        **extra: Additional options merged into the provider config,
            e.g. ``preserve_formatting``.

    Returns:
        TranslationProvider instance.

    Raises:
        ConfigurationError: If the provider type is not registered.

    Examples:
        provider = create_provider(settings.provider)
    """
    provider_type = (
        config.type.value if isinstance(config.type, ProviderType) else str(config.type)
    )
    provider_class = _REGISTRY.get(provider_type)
    if provider_class is None:
        raise ConfigurationError(
            f"Unsupported provider type: {provider_type}. Valid options: {available_providers()}"
        )

    return provider_class({**config.options(), **extra})
