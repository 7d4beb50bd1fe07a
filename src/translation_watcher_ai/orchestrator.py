"""
Translation orchestrator.

Selects the keys each target file is missing, turns them into translation
requests, and runs them through the configured provider in sequential
batches with per-request retry and an inter-batch rate-limit pause.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from translation_watcher_ai.config import Settings
from translation_watcher_ai.diff import DiffDetector, DiffOptions
from translation_watcher_ai.errors import (
    ConfigurationError,
    TranslationInProgressError,
    TranslationWatcherError,
)
from translation_watcher_ai.events import EventEmitter, EventKind
from translation_watcher_ai.languages import detect_language_from_path
from translation_watcher_ai.parser import TranslationParser
from translation_watcher_ai.providers.base import TranslationProvider
from translation_watcher_ai.tree import TranslationTree, get_node, get_value, split_key

# Maximum number of sibling values used as context
MAX_CONTEXT_SIBLINGS = 3


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TranslationRequest:
    """One key to translate into one target language."""

    key: str
    text: str
    source_language: str
    target_language: str
    context: str | None = None


@dataclass
class TranslationResponse:
    """Outcome of one request. Produced exactly once per request, success or not."""

    key: str
    original_text: str
    translated_text: str
    source_language: str
    target_language: str
    success: bool
    provider: str
    error: str | None = None
    timestamp: datetime = field(default_factory=_now)


@dataclass
class TranslationBatch:
    """A group of requests executed together, with their responses in request order."""

    requests: list[TranslationRequest]
    responses: list[TranslationResponse] = field(default_factory=list)
    start_time: datetime = field(default_factory=_now)
    end_time: datetime | None = None
    success_count: int = 0
    error_count: int = 0
    target_file: Path | None = None

    @property
    def is_complete(self) -> bool:
        """True once every request has been resolved."""
        return self.end_time is not None

    @property
    def duration_ms(self) -> float | None:
        """Wall time of the batch, or None while it is still running."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000


@dataclass
class OrchestratorOptions:
    """Tuning knobs for :class:`TranslationOrchestrator`."""

    batch_size: int = 10
    retry_attempts: int = 3
    retry_delay: float = 1.0  # seconds; the n-th retry waits retry_delay * n
    rate_limit_delay: float = 0.1  # seconds between batches
    preserve_formatting: bool = True
    context_injection: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> OrchestratorOptions:
        """Derive options from the translation section of the settings."""
        translation = settings.translation
        return cls(
            batch_size=translation.batch_size,
            retry_attempts=translation.retry_attempts,
            retry_delay=translation.retry_delay,
            rate_limit_delay=translation.rate_limit_delay,
            preserve_formatting=translation.preserve_formatting,
            context_injection=translation.context_injection,
        )


class TranslationOrchestrator:
    """
    Runs incremental translations for a base file and its target files.

    Only one :meth:`process_file_changes` call may run at a time; a second
    call fails immediately instead of queueing. Targets, batches and the
    requests inside a batch are all processed sequentially.
    """

    def __init__(
        self,
        settings: Settings,
        options: OrchestratorOptions | None = None,
        *,
        parser: TranslationParser | None = None,
        diff_detector: DiffDetector | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Immutable settings snapshot.
            options: Batch/retry options. Derived from ``settings`` if None.
            parser: Translation file parser.
            diff_detector: Key selection logic.
            logger: Logger to report progress to.
            sleep: Awaitable delay used for retries and rate limiting.
        """
        self.settings = settings
        self.options = options or OrchestratorOptions.from_settings(settings)
        self.parser = parser or TranslationParser()
        self.diff_detector = diff_detector or DiffDetector(
            DiffOptions(ignore_whitespace=True, deep_comparison=True)
        )
        self._logger = logger or logging.getLogger(__name__)
        self.events = EventEmitter(self._logger)
        self._sleep = sleep

        self._provider: TranslationProvider | None = None
        self._processing = False
        # Bumped by every run and by stop(); a run whose id is stale stops early
        self._run_id = 0
        self._current_batch: TranslationBatch | None = None

    def set_provider(self, provider: TranslationProvider) -> None:
        """
        Validate and install the translation provider.

        Raises:
            ConfigurationError: If the provider rejects the configured options.
        """
        if not provider.validate_config(self.settings.provider.options()):
            raise ConfigurationError(f"Invalid configuration for provider: {provider.name}")

        self._provider = provider
        self._logger.debug("Translation provider set to %s", provider.name)
        self.events.emit(EventKind.PROVIDER_CHANGED, provider=provider.name)

    def get_provider(self) -> TranslationProvider | None:
        """Current provider, if any."""
        return self._provider

    async def process_file_changes(
        self,
        base_file: str | Path,
        target_files: list[str | Path],
        *,
        only_keys: Collection[str] | None = None,
    ) -> list[TranslationBatch]:
        """
        Translate the keys each target file is missing.

        Args:
            base_file: Base-language translation file.
            target_files: Target-language files, processed one after another.
            only_keys: Optional key set; selection is narrowed to these keys.

        Returns:
            Every batch produced, in execution order. Targets needing no
            translation contribute no batches.

        Raises:
            ConfigurationError: If no provider is set.
            TranslationInProgressError: If another run is in flight.
            ParseError: If the base file cannot be parsed.
        """
        if self._provider is None:
            raise ConfigurationError("No translation provider configured")

        if self._processing:
            raise TranslationInProgressError("Translation already in progress")

        self._processing = True
        self._run_id += 1
        run_id = self._run_id
        batches: list[TranslationBatch] = []

        try:
            base = await self.parser.parse_file(base_file)

            for target_file in target_files:
                if run_id != self._run_id:
                    break

                try:
                    target = await self.parser.parse_file(target_file)
                    batches.extend(
                        await self._process_language_pair(
                            base.tree, target.tree, Path(target_file), only_keys, run_id
                        )
                    )
                except (TranslationWatcherError, OSError) as e:
                    self._logger.warning("Skipping target %s: %s", target_file, e)
                    self.events.emit(EventKind.ERROR, file=str(target_file), error=str(e))
        finally:
            # A stopped run must not clear the flag of the run that replaced it
            if run_id == self._run_id:
                self._processing = False

        return batches

    async def _process_language_pair(
        self,
        base_tree: TranslationTree,
        target_tree: TranslationTree,
        target_file: Path,
        only_keys: Collection[str] | None,
        run_id: int,
    ) -> list[TranslationBatch]:
        # Incremental policy: only keys missing or blank in the target
        keys = self.diff_detector.get_keys_needing_incremental_translation(base_tree, target_tree)
        if only_keys is not None:
            allowed = set(only_keys)
            keys = [key for key in keys if key in allowed]

        # Blank base text has nothing to translate
        keys = [key for key in keys if (get_value(base_tree, key) or "").strip()]

        if not keys:
            self._logger.debug("%s is up to date", target_file.name)
            return []

        target_language = self.detect_target_language(target_file)
        source_language = self.settings.watch.base_language

        requests = [
            TranslationRequest(
                key=key,
                text=get_value(base_tree, key) or "",
                source_language=source_language,
                target_language=target_language,
                context=(
                    self.extract_context(base_tree, key) or None
                    if self.options.context_injection
                    else None
                ),
            )
            for key in keys
        ]

        self._logger.info(
            "Translating %d key(s) into %s (%s)", len(requests), target_language, target_file.name
        )

        batch_size = max(1, self.options.batch_size)
        batches: list[TranslationBatch] = []

        for start in range(0, len(requests), batch_size):
            batch = await self.process_batch(
                requests[start : start + batch_size], target_file=target_file
            )
            batches.append(batch)

            if run_id != self._run_id:
                break

            # Rate limiting between batches
            if start + batch_size < len(requests):
                await self._sleep(self.options.rate_limit_delay)

        return batches

    async def process_batch(
        self,
        requests: list[TranslationRequest],
        target_file: Path | None = None,
    ) -> TranslationBatch:
        """
        Execute one batch of requests.

        Every request yields exactly one response, in request order; provider
        failures become failed responses and never abort the batch.

        Raises:
            ConfigurationError: If no provider is set.
        """
        if self._provider is None:
            raise ConfigurationError("No translation provider configured")

        batch = TranslationBatch(requests=list(requests), target_file=target_file)
        self._current_batch = batch
        self.events.emit(EventKind.BATCH_STARTED, batch=batch)

        for request in batch.requests:
            try:
                response = await self._translate_with_retry(request)
            except Exception as e:
                response = self._failed_response(request, e)
                batch.responses.append(response)
                batch.error_count += 1
                self._logger.warning("Translation failed for %s: %s", request.key, e)
                self.events.emit(
                    EventKind.TRANSLATION_FAILED, request=request, response=response, error=e
                )
                continue

            batch.responses.append(response)
            batch.success_count += 1
            self.events.emit(EventKind.TRANSLATION_COMPLETED, request=request, response=response)

        batch.end_time = _now()
        self._logger.info(
            "Batch finished: %d succeeded, %d failed", batch.success_count, batch.error_count
        )
        self.events.emit(EventKind.BATCH_COMPLETED, batch=batch)
        if self._current_batch is batch:
            self._current_batch = None

        return batch

    async def _translate_with_retry(self, request: TranslationRequest) -> TranslationResponse:
        assert self._provider is not None
        attempts = max(1, self.options.retry_attempts)
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                translated = await self._provider.translate(
                    request.text, request.target_language, request.context
                )
            except Exception as e:
                last_error = e
                self._logger.debug(
                    "Attempt %d/%d for %s failed: %s", attempt, attempts, request.key, e
                )
                if attempt < attempts:
                    # Linear backoff
                    await self._sleep(self.options.retry_delay * attempt)
                continue

            return TranslationResponse(
                key=request.key,
                original_text=request.text,
                translated_text=translated,
                source_language=request.source_language,
                target_language=request.target_language,
                success=True,
                provider=self._provider.name,
            )

        raise last_error or RuntimeError("Translation failed after all retry attempts")

    def _failed_response(self, request: TranslationRequest, error: Exception) -> TranslationResponse:
        return TranslationResponse(
            key=request.key,
            original_text=request.text,
            translated_text="",
            source_language=request.source_language,
            target_language=request.target_language,
            success=False,
            error=str(error) or type(error).__name__,
            provider=self._provider.name if self._provider else "unknown",
        )

    def extract_context(self, tree: TranslationTree, key: str) -> str:
        """
        Build a context hint for ``key``.

        Uses the parent value when the parent path is itself a string,
        otherwise up to three sibling ``key: value`` pairs.

        Returns:
            The context string, or an empty string if nothing applies.
        """
        segments = split_key(key)
        parent = segments[:-1]

        level = get_node(tree, parent) if parent else tree
        if isinstance(level, str) and level:
            return f"Context: {level}"
        if not isinstance(level, dict):
            return ""

        siblings = [
            f"{sibling_key}: {sibling_value}"
            for sibling_key, sibling_value in level.items()
            if isinstance(sibling_value, str) and sibling_key != segments[-1]
        ]

        if siblings:
            return f"Related: {', '.join(siblings[:MAX_CONTEXT_SIBLINGS])}"

        return ""

    def detect_target_language(self, target_file: str | Path) -> str:
        """
        Resolve the target language of a file.

        Falls back to the first configured target language when the path does
        not name one of them.
        """
        targets = self.settings.watch.target_languages
        language = detect_language_from_path(target_file)

        if language and language in targets:
            return language

        fallback = targets[0] if targets else "en"
        self._logger.warning(
            "Could not detect target language from file path: %s. Using fallback: %s",
            target_file,
            fallback,
        )
        return fallback

    def get_current_batch(self) -> TranslationBatch | None:
        """The batch currently executing, if any."""
        return self._current_batch

    def is_translating(self) -> bool:
        """True while a run is in progress."""
        return self._processing

    def stop(self) -> None:
        """
        Force the orchestrator back to idle.

        Cooperative only: an awaited provider call is not cancelled, and the
        running loop exits after the batch it is in.
        """
        self._run_id += 1
        self._processing = False
        self._current_batch = None
        self.events.emit(EventKind.STOPPED)

    def get_stats(self) -> dict[str, Any]:
        """
        Get orchestrator status.

        Returns:
            Dictionary with processing flag, current batch and provider name.
        """
        return {
            "is_processing": self._processing,
            "current_batch": self._current_batch,
            "provider": self._provider.name if self._provider else None,
        }
