"""
translation-watcher-ai: AI-powered translation file watcher.

This package provides tools for:
- Watching base-language translation files (JSON, YAML, JS/TS modules)
- Detecting keys that are missing or changed in target languages
- Translating them in batches through OpenAI, Anthropic or a local model
- Writing the translations back into the target files
"""

__version__ = "0.1.0"

from translation_watcher_ai.config import ProviderType, Settings, load_config
from translation_watcher_ai.coordinator import AutoTranslator, TranslationResult
from translation_watcher_ai.diff import DiffDetector, DiffOptions, DiffResult
from translation_watcher_ai.errors import (
    ConfigurationError,
    CoordinatorStateError,
    ParseError,
    ProviderError,
    TranslationInProgressError,
    TranslationWatcherError,
    WatcherError,
)
from translation_watcher_ai.events import Event, EventKind
from translation_watcher_ai.orchestrator import (
    OrchestratorOptions,
    TranslationBatch,
    TranslationOrchestrator,
    TranslationRequest,
    TranslationResponse,
)
from translation_watcher_ai.parser import FileFormat, TranslationParser
from translation_watcher_ai.providers import TranslationProvider, create_provider
from translation_watcher_ai.watcher import FileChangeEvent, FileChangeType, TranslationWatcher

__all__ = [
    # Config
    "Settings",
    "load_config",
    "ProviderType",
    # Errors
    "TranslationWatcherError",
    "ConfigurationError",
    "ParseError",
    "ProviderError",
    "WatcherError",
    "TranslationInProgressError",
    "CoordinatorStateError",
    # Events
    "Event",
    "EventKind",
    # Parsing and diffing
    "TranslationParser",
    "FileFormat",
    "DiffDetector",
    "DiffOptions",
    "DiffResult",
    # Translation
    "TranslationProvider",
    "create_provider",
    "TranslationOrchestrator",
    "OrchestratorOptions",
    "TranslationRequest",
    "TranslationResponse",
    "TranslationBatch",
    # Watching
    "TranslationWatcher",
    "FileChangeEvent",
    "FileChangeType",
    "AutoTranslator",
    "TranslationResult",
]
