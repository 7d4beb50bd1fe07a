"""
Exception hierarchy for translation-watcher-ai.

Configuration and guard errors are raised to the caller; per-target and
per-request failures are recovered inside the orchestrator and reported as
events or failed responses instead.
"""

from __future__ import annotations


class TranslationWatcherError(Exception):
    """Base exception for all translation-watcher-ai errors."""


class ConfigurationError(TranslationWatcherError):
    """Missing provider, invalid provider config, unsupported provider type, bad watch path."""


class ParseError(TranslationWatcherError):
    """A translation file could not be read or parsed."""


class ProviderError(TranslationWatcherError):
    """A translation provider rejected the input or the backend call failed."""


class WatcherError(TranslationWatcherError):
    """The file watcher was used in an invalid state."""


class TranslationInProgressError(TranslationWatcherError):
    """Another translation run is still in flight."""


class CoordinatorStateError(TranslationWatcherError):
    """The auto-translator is not in the state required for the operation."""
