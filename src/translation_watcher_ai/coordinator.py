"""
Auto-translate coordinator.

Wires the watcher to the orchestrator: edits to a base-language file trigger
a translation run, and the successful translations are written back into the
target files next to it.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from translation_watcher_ai.config import Settings
from translation_watcher_ai.errors import (
    CoordinatorStateError,
    TranslationInProgressError,
    TranslationWatcherError,
)
from translation_watcher_ai.events import Event, EventEmitter, EventKind
from translation_watcher_ai.languages import detect_language_from_path, sibling_language_file
from translation_watcher_ai.orchestrator import TranslationBatch, TranslationOrchestrator
from translation_watcher_ai.parser import TranslationParser
from translation_watcher_ai.providers import TranslationProvider, create_provider
from translation_watcher_ai.tree import TranslationTree, set_value
from translation_watcher_ai.watcher import FileChangeEvent, FileChangeType, TranslationWatcher


@dataclass
class TranslationResult:
    """Outcome of one :meth:`AutoTranslator.translate_file` call."""

    success: bool = False
    batches_processed: int = 0
    total_translations: int = 0
    failed_translations: int = 0
    errors: list[str] = field(default_factory=list)
    updated_files: list[Path] = field(default_factory=list)


class AutoTranslator:
    """
    Runs the watch-translate-write loop.

    Example:
        translator = AutoTranslator(settings)
        await translator.start()
        ...
        await translator.stop()
    """

    def __init__(
        self,
        settings: Settings,
        *,
        provider: TranslationProvider | None = None,
        orchestrator: TranslationOrchestrator | None = None,
        watcher: TranslationWatcher | None = None,
        parser: TranslationParser | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            settings: Immutable settings snapshot.
            provider: Translation provider. Built from ``settings.provider`` on
                start if None.
            orchestrator: Orchestrator to run translations with.
            watcher: File watcher to react to.
            parser: Parser used to read and write target files.
            logger: Logger to report to.
        """
        self.settings = settings
        self._logger = logger or logging.getLogger(__name__)
        self.parser = parser or TranslationParser()
        self.orchestrator = orchestrator or TranslationOrchestrator(
            settings, parser=self.parser, logger=self._logger
        )
        self.watcher = watcher or TranslationWatcher(settings, logger=self._logger)
        self.events = EventEmitter(self._logger)

        self._provider = provider
        self._owns_provider = provider is None
        self._running = False
        self._processing = False
        self._idle = asyncio.Event()
        self._idle.set()
        # Target errors reported by the orchestrator during the current run
        self._run_errors: list[str] = []
        # Base file -> tree as of the last run
        self._snapshots: dict[Path, TranslationTree] = {}

        self._setup_event_listeners()

    async def start(self) -> None:
        """
        Set up the provider and start watching.

        Raises:
            CoordinatorStateError: If already running.
            ConfigurationError: If the provider cannot be created or rejects its config.
        """
        if self._running:
            raise CoordinatorStateError("Translation manager is already running")

        try:
            self._setup_provider()
            await self.watcher.start()
        except TranslationWatcherError as e:
            self._logger.error("Failed to start translation manager: %s", e)
            await self._close_provider()
            raise

        self._running = True
        self._logger.info("Translation manager started successfully")
        self.events.emit(EventKind.STARTED)

    async def stop(self) -> None:
        """Stop watching. The manager is marked stopped even if the watcher fails to stop."""
        if not self._running:
            return

        if self._processing:
            self._logger.info("Waiting for the running translation to finish")
            self.orchestrator.stop()
            await self._idle.wait()

        try:
            await self.watcher.stop()
        except TranslationWatcherError as e:
            self._logger.error("Failed to stop translation manager: %s", e)
            raise
        finally:
            self._running = False
            await self._close_provider()

        self._logger.info("Translation manager stopped")
        self.events.emit(EventKind.STOPPED)

    def is_active(self) -> bool:
        return self._running

    def is_translating(self) -> bool:
        return self._processing

    async def translate_file(
        self,
        file_path: str | Path,
        *,
        changed_only: bool = False,
    ) -> TranslationResult:
        """
        Translate a base-language file into its sibling target files.

        Args:
            file_path: Base-language file.
            changed_only: Only translate keys whose base value changed since the
                previous run for this file.

        Returns:
            TranslationResult. Failures inside the run are reported in
            ``errors`` rather than raised.

        Raises:
            CoordinatorStateError: If the manager is not running.
            TranslationInProgressError: If another translation is in flight.
        """
        if not self._running:
            raise CoordinatorStateError("Translation manager is not running")

        if self._processing:
            raise TranslationInProgressError("Translation already in progress")

        self._processing = True
        self._idle.clear()
        try:
            return await self._run(Path(file_path), changed_only)
        except (TranslationWatcherError, OSError) as e:
            self._logger.error("Translation failed: %s", e)
            return TranslationResult(errors=[str(e)])
        finally:
            self._processing = False
            self._idle.set()

    async def _run(self, base_file: Path, changed_only: bool) -> TranslationResult:
        base_language = self.settings.watch.base_language
        if detect_language_from_path(base_file) != base_language:
            raise TranslationWatcherError(f"File {base_file} is not a base language file")

        target_files = self.get_target_files(base_file)
        if not target_files:
            raise TranslationWatcherError("No target language files found")

        base = await self.parser.parse_file(base_file)
        snapshot_key = base_file.resolve()
        previous = self._snapshots.get(snapshot_key)

        only_keys = None
        if changed_only and previous is not None:
            only_keys = self.orchestrator.diff_detector.get_changed_keys(base.tree, previous)
            self._logger.debug("%d key(s) changed since the last run", len(only_keys))

        self._logger.info("Processing translations for %d target languages", len(target_files))
        self._run_errors = []
        batches = await self.orchestrator.process_file_changes(
            base_file, target_files, only_keys=only_keys
        )
        self._snapshots[snapshot_key] = copy.deepcopy(base.tree)

        result = TranslationResult(success=True, errors=list(self._run_errors))
        if not batches:
            self._logger.info("No translations needed - files are up to date")
            return result

        result.batches_processed = len(batches)
        result.total_translations = sum(batch.success_count for batch in batches)
        result.failed_translations = sum(batch.error_count for batch in batches)
        await self._update_target_files(batches, result)

        self._logger.info("Translation completed: %d batches processed", len(batches))
        return result

    async def _update_target_files(
        self, batches: list[TranslationBatch], result: TranslationResult
    ) -> None:
        translations: dict[Path, dict[str, str]] = defaultdict(dict)
        for batch in batches:
            if batch.target_file is None:
                continue
            for response in batch.responses:
                if response.success and response.translated_text:
                    translations[batch.target_file][response.key] = response.translated_text

        for target_file, values in translations.items():
            try:
                # Re-read so edits made during the run are kept
                target = await self.parser.parse_file(target_file)
                for key, text in values.items():
                    set_value(target.tree, key, text)
                await self.parser.write_file(target_file, target.tree, target.format)
            except (TranslationWatcherError, OSError) as e:
                self._logger.error("Failed to update %s: %s", target_file.name, e)
                result.errors.append(f"Failed to update {target_file}: {e}")
                continue

            result.updated_files.append(target_file)
            self._logger.info("Updated %s with %d translations", target_file.name, len(values))

    def get_target_files(self, base_file: str | Path) -> list[Path]:
        """Existing target-language counterparts of ``base_file``."""
        base_language = self.settings.watch.base_language
        target_files = []

        for language in self.settings.watch.target_languages:
            candidate = sibling_language_file(base_file, base_language, language)
            if candidate.exists():
                target_files.append(candidate)
            else:
                self._logger.warning("Target language file not found: %s", candidate)

        return target_files

    def get_status(self) -> dict[str, Any]:
        """
        Get current status and statistics.

        Returns:
            Dictionary with run flags, configuration summary and component stats.
        """
        return {
            "is_running": self._running,
            "is_processing": self._processing,
            "config": {
                "base_language": self.settings.watch.base_language,
                "target_languages": list(self.settings.watch.target_languages),
                "watch_path": str(self.settings.watch.path),
                "provider": self.settings.provider.type.value,
            },
            "watcher": self.watcher.get_stats(),
            "orchestrator": self.orchestrator.get_stats(),
        }

    def _setup_provider(self) -> None:
        if self._provider is None:
            self._provider = create_provider(
                self.settings.provider,
                preserve_formatting=self.settings.translation.preserve_formatting,
            )

        self.orchestrator.set_provider(self._provider)
        self._logger.info("Provider %s initialized successfully", self._provider.name)

    def _setup_event_listeners(self) -> None:
        self.watcher.events.on(EventKind.FILE_CHANGE, self._on_file_change)
        self.watcher.events.on(EventKind.ERROR, self._on_watcher_error)
        self.orchestrator.events.on(EventKind.TRANSLATION_COMPLETED, self._relay)
        self.orchestrator.events.on(EventKind.TRANSLATION_FAILED, self._relay)
        self.orchestrator.events.on(EventKind.ERROR, self._on_orchestrator_error)

    async def _on_file_change(self, event: Event) -> None:
        change: FileChangeEvent = event.payload["event"]
        if change.type is not FileChangeType.CHANGE:
            return
        if change.language != self.settings.watch.base_language:
            return

        self._logger.info("Base language file changed: %s", change.file_path)
        self.events.emit(EventKind.BASE_LANGUAGE_CHANGED, event=change)

        if self.is_active() and not self.is_translating():
            result = await self.translate_file(change.file_path)
            if result.errors:
                self._logger.error("Auto-translation failed: %s", "; ".join(result.errors))

    def _on_watcher_error(self, event: Event) -> None:
        self._logger.error("Watcher error: %s", event.payload.get("error"))
        self.events.emit(EventKind.ERROR, **event.payload)

    def _on_orchestrator_error(self, event: Event) -> None:
        self._run_errors.append(f"Skipped {event.payload.get('file')}: {event.payload.get('error')}")
        self.events.emit(EventKind.ERROR, **event.payload)

    def _relay(self, event: Event) -> None:
        self.events.emit(event.kind, **event.payload)

    async def _close_provider(self) -> None:
        if self._owns_provider and self._provider is not None:
            await self._provider.aclose()
            self._provider = None
