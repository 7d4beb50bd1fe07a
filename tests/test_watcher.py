from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from conftest import SETTLE, FakeObserver, make_settings, write_json
from watchdog.events import FileDeletedEvent, FileModifiedEvent, FileMovedEvent

from translation_watcher_ai.errors import ConfigurationError, WatcherError
from translation_watcher_ai.events import EventKind
from translation_watcher_ai.watcher import (
    FileChangeType,
    TranslationWatcher,
    WatcherOptions,
    WatcherState,
)


class Recorder:
    def __init__(self, watcher: TranslationWatcher) -> None:
        self.events = {kind: [] for kind in EventKind}
        for kind in EventKind:
            watcher.events.on(kind, self.events[kind].append)

    def changes(self, kind: EventKind = EventKind.FILE_CHANGE):
        return [event.payload["event"] for event in self.events[kind]]


def _watcher(settings, observer: FakeObserver | None = None) -> TranslationWatcher:
    observer = observer or FakeObserver()
    return TranslationWatcher(settings, observer_factory=lambda: observer)


@pytest.mark.asyncio
async def test_start_scans_existing_base_files_then_ready(settings, locales: Path) -> None:
    observer = FakeObserver()
    watcher = _watcher(settings, observer)
    recorder = Recorder(watcher)

    await watcher.start()
    assert watcher.state is WatcherState.WATCHING
    assert observer.started
    assert observer.handlers[0][1] == str(locales)
    assert len(recorder.events[EventKind.STARTED]) == 1
    assert len(recorder.events[EventKind.READY]) == 1

    await asyncio.sleep(SETTLE)
    added = recorder.changes(EventKind.FILE_ADDED)
    assert [(e.file_path.name, e.language) for e in added] == [("en.json", "en")]
    assert recorder.changes()[0].type is FileChangeType.ADD

    await watcher.stop()
    assert observer.stopped and observer.joined
    assert watcher.state is WatcherState.STOPPED
    assert len(recorder.events[EventKind.STOPPED]) == 1


@pytest.mark.asyncio
async def test_start_twice_and_stop_twice(settings) -> None:
    watcher = _watcher(settings)
    await watcher.start()

    with pytest.raises(WatcherError, match="already running"):
        await watcher.start()

    await watcher.stop()
    await watcher.stop()
    assert not watcher.is_running()


@pytest.mark.asyncio
async def test_invalid_watch_paths(tmp_path: Path) -> None:
    missing = _watcher(make_settings(tmp_path / "nope"))
    errors = Recorder(missing).events[EventKind.ERROR]

    with pytest.raises(ConfigurationError, match="Watch path does not exist"):
        await missing.start()
    assert missing.state is WatcherState.STOPPED
    assert len(errors) == 1

    a_file = tmp_path / "file.json"
    a_file.write_text("{}", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Watch path must be a directory"):
        await _watcher(make_settings(a_file)).start()


@pytest.mark.asyncio
async def test_burst_of_changes_is_debounced(settings, locales: Path) -> None:
    watcher = _watcher(settings)
    recorder = Recorder(watcher)
    await watcher.start()
    await asyncio.sleep(SETTLE)

    for _ in range(5):
        watcher.handle_raw_event(FileChangeType.CHANGE, locales / "en.json")
        await asyncio.sleep(0.005)
    await asyncio.sleep(SETTLE)

    changed = recorder.changes(EventKind.FILE_CHANGED)
    assert len(changed) == 1
    assert changed[0].file_path == locales / "en.json"
    await watcher.stop()


@pytest.mark.asyncio
async def test_irrelevant_files_are_filtered(settings, locales: Path) -> None:
    watcher = _watcher(settings)
    recorder = Recorder(watcher)
    await watcher.start()
    await asyncio.sleep(SETTLE)

    watcher.handle_raw_event("change", locales / "fr.json")
    watcher.handle_raw_event("change", locales / "en.yaml")
    watcher.handle_raw_event("change", locales / "notes.json")
    watcher.handle_raw_event("change", locales / "node_modules" / "en.json")
    watcher.handle_raw_event("change", locales / "en.json.backup")
    await asyncio.sleep(SETTLE)

    assert recorder.changes(EventKind.FILE_CHANGED) == []
    await watcher.stop()


@pytest.mark.asyncio
async def test_directory_layout_language_detection(tmp_path: Path) -> None:
    locales = tmp_path / "locales"
    write_json(locales / "en" / "common.json", {"a": "A"})
    write_json(locales / "fr" / "common.json", {})
    watcher = _watcher(make_settings(locales))
    recorder = Recorder(watcher)

    await watcher.start()
    await asyncio.sleep(SETTLE)

    added = recorder.changes(EventKind.FILE_ADDED)
    assert [(e.file_path, e.language) for e in added] == [(locales / "en" / "common.json", "en")]
    await watcher.stop()


@pytest.mark.asyncio
async def test_observer_events_are_bridged(settings, locales: Path) -> None:
    observer = FakeObserver()
    watcher = _watcher(settings, observer)
    recorder = Recorder(watcher)
    await watcher.start()
    await asyncio.sleep(SETTLE)
    handler = observer.handlers[0][0]

    handler.on_any_event(FileModifiedEvent(str(locales / "en.json")))
    handler.on_any_event(FileMovedEvent(str(locales / "en.json"), str(locales / "sub" / "en.json")))
    handler.on_any_event(FileDeletedEvent(str(locales / "other" / "en.json")))
    await asyncio.sleep(SETTLE)

    assert [e.file_path for e in recorder.changes(EventKind.FILE_CHANGED)] == [locales / "en.json"]
    assert {e.file_path for e in recorder.changes(EventKind.FILE_REMOVED)} == {
        locales / "en.json",
        locales / "other" / "en.json",
    }
    assert locales / "sub" / "en.json" in [e.file_path for e in recorder.changes(EventKind.FILE_ADDED)]
    await watcher.stop()


@pytest.mark.asyncio
async def test_stop_drops_pending_events(settings, locales: Path) -> None:
    watcher = _watcher(settings)
    recorder = Recorder(watcher)
    await watcher.start()
    await asyncio.sleep(SETTLE)

    watcher.handle_raw_event("change", locales / "en.json")
    assert watcher.get_stats()["pending_events"] == 1
    await watcher.stop()
    await asyncio.sleep(SETTLE)

    assert recorder.changes(EventKind.FILE_CHANGED) == []
    assert watcher.get_stats()["pending_events"] == 0


def test_watched_files_and_ignore_patterns(settings, locales: Path) -> None:
    watcher = TranslationWatcher(settings, WatcherOptions(ignore_patterns=[]))
    write_json(locales / "vendor" / "en.json", {})

    assert locales / "vendor" / "en.json" in watcher.get_watched_files()

    watcher.add_ignore_patterns(["*/vendor/*"])
    assert locales / "vendor" / "en.json" not in watcher.get_watched_files()
    assert [path.name for path in watcher.get_watched_files()] == ["de.json", "en.json", "fr.json"]

    watcher.remove_ignore_patterns(["*/vendor/*"])
    assert watcher.options.ignore_patterns == []
