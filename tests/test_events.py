from __future__ import annotations

import logging

import pytest

from translation_watcher_ai.events import EventEmitter, EventKind


def test_handlers_run_in_order_and_can_unsubscribe() -> None:
    emitter = EventEmitter()
    seen = []
    first = emitter.on(EventKind.READY, lambda event: seen.append("first"))
    emitter.on(EventKind.READY, lambda event: seen.append("second"))

    emitter.emit(EventKind.READY)
    emitter.off(first)
    emitter.emit(EventKind.READY)

    assert seen == ["first", "second", "second"]
    assert emitter.listener_count(EventKind.READY) == 1
    assert emitter.listener_count(EventKind.ERROR) == 0


def test_failing_handler_does_not_stop_others(caplog: pytest.LogCaptureFixture) -> None:
    emitter = EventEmitter()
    seen = []

    def broken(event) -> None:
        raise RuntimeError("handler bug")

    emitter.on(EventKind.ERROR, broken)
    emitter.on(EventKind.ERROR, lambda event: seen.append(event.payload["error"]))

    with caplog.at_level(logging.ERROR):
        event = emitter.emit(EventKind.ERROR, error="disk full")

    assert seen == ["disk full"]
    assert event.kind is EventKind.ERROR
    assert "Error in event handler for error" in caplog.text


@pytest.mark.asyncio
async def test_coroutine_handlers_are_scheduled_and_drained() -> None:
    emitter = EventEmitter()
    seen = []

    async def handler(event) -> None:
        seen.append(event.payload["value"])

    emitter.on(EventKind.FILE_CHANGE, handler)
    emitter.emit(EventKind.FILE_CHANGE, value=1)
    emitter.emit(EventKind.FILE_CHANGE, value=2)

    assert seen == []
    await emitter.drain()
    assert seen == [1, 2]


def test_handler_errors_go_to_the_injected_logger(caplog: pytest.LogCaptureFixture) -> None:
    emitter = EventEmitter(logging.getLogger("watcher-app"))

    def broken(event) -> None:
        raise RuntimeError("handler bug")

    emitter.on(EventKind.STOPPED, broken)

    with caplog.at_level(logging.ERROR, logger="watcher-app"):
        emitter.emit(EventKind.STOPPED)

    assert [record.name for record in caplog.records] == ["watcher-app"]
