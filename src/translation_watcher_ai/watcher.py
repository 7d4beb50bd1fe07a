"""
File watcher for base-language translation files.

Bridges watchdog's observer thread onto the asyncio loop, filters raw
filesystem events down to base-language translation files, and debounces
them per ``(type, path)`` before emitting ``fileChange`` events.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from translation_watcher_ai.config import Settings
from translation_watcher_ai.errors import ConfigurationError, WatcherError
from translation_watcher_ai.events import EventEmitter, EventKind
from translation_watcher_ai.languages import detect_language_from_path, is_translation_file

# Seconds to wait for the observer thread on shutdown
OBSERVER_JOIN_TIMEOUT = 5.0


class FileChangeType(str, Enum):
    """Kinds of file change the watcher reports."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


_KIND_BY_TYPE = {
    FileChangeType.ADD: EventKind.FILE_ADDED,
    FileChangeType.CHANGE: EventKind.FILE_CHANGED,
    FileChangeType.UNLINK: EventKind.FILE_REMOVED,
}


@dataclass
class FileChangeEvent:
    """A debounced change to a base-language translation file."""

    type: FileChangeType
    file_path: Path
    language: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class WatcherOptions:
    """Options for :class:`TranslationWatcher`."""

    debounce_ms: int = 300
    ignore_patterns: list[str] = field(
        default_factory=lambda: ["*/node_modules/*", "*/.git/*", "*.backup"]
    )
    recursive: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> WatcherOptions:
        return cls(
            debounce_ms=settings.watch.debounce_ms,
            ignore_patterns=list(settings.watch.ignore_patterns),
        )


class WatcherState(str, Enum):
    """Lifecycle of the watcher."""

    STOPPED = "stopped"
    STARTING = "starting"
    WATCHING = "watching"
    STOPPING = "stopping"


class _LoopBridge(FileSystemEventHandler):
    """Forwards watchdog events from the observer thread to the event loop."""

    def __init__(self, watcher: TranslationWatcher, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._watcher = watcher
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        if event.event_type == EVENT_TYPE_CREATED:
            self._forward(FileChangeType.ADD, event.src_path)
        elif event.event_type == EVENT_TYPE_MODIFIED:
            self._forward(FileChangeType.CHANGE, event.src_path)
        elif event.event_type == EVENT_TYPE_DELETED:
            self._forward(FileChangeType.UNLINK, event.src_path)
        elif event.event_type == EVENT_TYPE_MOVED:
            self._forward(FileChangeType.UNLINK, event.src_path)
            self._forward(FileChangeType.ADD, event.dest_path)

    def _forward(self, change_type: FileChangeType, path: str | bytes) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._watcher.handle_raw_event, change_type, os.fsdecode(path))


class TranslationWatcher:
    """
    Watches a directory tree for edits to base-language translation files.

    Example:
        watcher = TranslationWatcher(settings)
        watcher.events.on(EventKind.FILE_CHANGE, on_change)
        await watcher.start()
    """

    def __init__(
        self,
        settings: Settings,
        options: WatcherOptions | None = None,
        *,
        logger: logging.Logger | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ):
        """
        Initialize watcher.

        Args:
            settings: Immutable settings snapshot.
            options: Debounce and ignore options. Derived from ``settings`` if None.
            logger: Logger to report to.
            observer_factory: Builds the watchdog observer.
        """
        self.settings = settings
        self.options = options or WatcherOptions.from_settings(settings)
        self._logger = logger or logging.getLogger(__name__)
        self.events = EventEmitter(self._logger)
        self.state = WatcherState.STOPPED

        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timers: dict[tuple[FileChangeType, Path], asyncio.TimerHandle] = {}
        self._events_emitted = 0

    @property
    def watch_path(self) -> Path:
        return self.settings.watch.path

    async def start(self) -> None:
        """
        Start watching and scan existing files.

        Existing base-language files are reported as ``add`` events, after
        which ``ready`` is emitted.

        Raises:
            WatcherError: If the watcher is already running or the backend fails.
            ConfigurationError: If the watch path is missing or not a directory.
        """
        if self.state is not WatcherState.STOPPED:
            raise WatcherError("Watcher is already running")

        self.state = WatcherState.STARTING
        try:
            self._validate_watch_path()
            self._loop = asyncio.get_running_loop()

            observer = self._observer_factory()
            observer.schedule(
                _LoopBridge(self, self._loop),
                str(self.watch_path),
                recursive=self.options.recursive,
            )
            observer.start()
        except ConfigurationError as e:
            self.state = WatcherState.STOPPED
            self.events.emit(EventKind.ERROR, error=e)
            raise
        except OSError as e:
            self.state = WatcherState.STOPPED
            self.events.emit(EventKind.ERROR, error=e)
            raise WatcherError(f"Failed to start watching {self.watch_path}: {e}") from e

        self._observer = observer
        self.state = WatcherState.WATCHING
        self._logger.info("Started watching: %s", self.watch_path)
        self.events.emit(EventKind.STARTED, watch_path=self.watch_path)

        for path in self.get_watched_files():
            self.handle_raw_event(FileChangeType.ADD, path)

        self._logger.debug("File watcher is ready")
        self.events.emit(EventKind.READY)

    async def stop(self) -> None:
        """Stop watching. Pending debounced events are dropped."""
        if self.state is WatcherState.STOPPED:
            return

        self.state = WatcherState.STOPPING
        self._clear_timers()

        observer, self._observer = self._observer, None
        try:
            if observer is not None:
                observer.stop()
                await asyncio.to_thread(observer.join, OBSERVER_JOIN_TIMEOUT)
        except RuntimeError as e:
            self.events.emit(EventKind.ERROR, error=e)
            raise WatcherError(f"Failed to stop watching {self.watch_path}: {e}") from e
        finally:
            self.state = WatcherState.STOPPED

        self._logger.info("Stopped watching for file changes")
        self.events.emit(EventKind.STOPPED)

    async def restart(self, settings: Settings | None = None) -> None:
        """Stop, optionally swap settings, and start again."""
        if settings is not None:
            self.settings = settings
        await self.stop()
        await self.start()

    def is_running(self) -> bool:
        return self.state is WatcherState.WATCHING

    def handle_raw_event(self, change_type: FileChangeType | str, path: str | Path) -> None:
        """
        Filter a raw filesystem event and debounce it if relevant.

        Only base-language translation files that match the configured file
        pattern and are not ignored get through.
        """
        if self.state is not WatcherState.WATCHING:
            return

        change_type = FileChangeType(change_type)
        path = Path(path)

        if self._is_ignored(path):
            self._logger.debug("Ignoring %s", path)
            return

        if not is_translation_file(path, self.settings.watch.file_pattern):
            return

        language = detect_language_from_path(path)
        if language is None:
            self._logger.debug("Skipping %s: could not detect language", path)
            return

        if language != self.settings.watch.base_language:
            return

        self._debounce(FileChangeEvent(type=change_type, file_path=path, language=language))

    def _debounce(self, event: FileChangeEvent) -> None:
        key = (event.type, event.file_path)

        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()

        loop = self._loop or asyncio.get_running_loop()
        self._timers[key] = loop.call_later(
            self.options.debounce_ms / 1000, self._flush, key, event
        )

    def _flush(self, key: tuple[FileChangeType, Path], event: FileChangeEvent) -> None:
        self._timers.pop(key, None)
        if self.state is not WatcherState.WATCHING:
            return

        self._events_emitted += 1
        self._logger.info("File %s: %s (%s)", event.type.value, event.file_path, event.language)
        self.events.emit(EventKind.FILE_CHANGE, event=event)
        self.events.emit(_KIND_BY_TYPE[event.type], event=event)

    def _clear_timers(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _validate_watch_path(self) -> None:
        if not self.watch_path.exists():
            raise ConfigurationError(f"Watch path does not exist: {self.watch_path}")
        if not self.watch_path.is_dir():
            raise ConfigurationError(f"Watch path must be a directory: {self.watch_path}")

    def _is_ignored(self, path: Path) -> bool:
        candidate = path.as_posix()
        return any(fnmatch.fnmatch(candidate, pattern) for pattern in self.options.ignore_patterns)

    def get_watched_files(self) -> list[Path]:
        """List translation files under the watch path that pass the ignore patterns."""
        if not self.watch_path.is_dir():
            return []

        candidates = self.watch_path.rglob("*") if self.options.recursive else self.watch_path.glob("*")
        return sorted(
            path
            for path in candidates
            if path.is_file()
            and not self._is_ignored(path)
            and is_translation_file(path, self.settings.watch.file_pattern)
        )

    def add_ignore_patterns(self, patterns: list[str]) -> None:
        self.options.ignore_patterns.extend(p for p in patterns if p not in self.options.ignore_patterns)

    def remove_ignore_patterns(self, patterns: list[str]) -> None:
        self.options.ignore_patterns = [p for p in self.options.ignore_patterns if p not in patterns]

    def get_stats(self) -> dict[str, Any]:
        """
        Get watcher statistics.

        Returns:
            Dictionary with state, watch path, languages and debounce counters.
        """
        return {
            "is_watching": self.is_running(),
            "state": self.state.value,
            "watch_path": str(self.watch_path),
            "base_language": self.settings.watch.base_language,
            "target_languages": list(self.settings.watch.target_languages),
            "pending_events": len(self._timers),
            "events_emitted": self._events_emitted,
        }
