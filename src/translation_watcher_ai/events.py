"""
Observation events for the watcher, orchestrator and auto-translator.

Components own an :class:`EventEmitter` and emit members of the closed
:class:`EventKind` enum. Subscribers register plain callables or coroutine
functions; coroutine handlers are scheduled on the running event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

class EventKind(str, Enum):
    """Every observation a component can emit."""

    # Lifecycle
    STARTED = "started"
    STOPPED = "stopped"
    READY = "ready"
    ERROR = "error"

    # Orchestrator
    PROVIDER_CHANGED = "providerChanged"
    BATCH_STARTED = "batchStarted"
    BATCH_COMPLETED = "batchCompleted"
    TRANSLATION_COMPLETED = "translationCompleted"
    TRANSLATION_FAILED = "translationFailed"

    # Watcher
    FILE_CHANGE = "fileChange"
    FILE_ADDED = "add"
    FILE_CHANGED = "change"
    FILE_REMOVED = "unlink"

    # Auto-translator
    BASE_LANGUAGE_CHANGED = "baseLanguageChanged"


@dataclass
class Event:
    """An emitted observation."""

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[Event], Awaitable[None] | None]


@dataclass
class Subscription:
    """Handle returned by :meth:`EventEmitter.on`, used to unsubscribe."""

    kind: EventKind
    handler: EventHandler


class EventEmitter:
    """
    Synchronous callback registry keyed by :class:`EventKind`.

    Handlers run in registration order. A failing handler is logged and does
    not prevent the remaining handlers from running.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: dict[EventKind, list[Subscription]] = defaultdict(list)
        self._pending: set[asyncio.Task[Any]] = set()

    def on(self, kind: EventKind, handler: EventHandler) -> Subscription:
        """Register ``handler`` for ``kind``."""
        subscription = Subscription(kind=EventKind(kind), handler=handler)
        self._subscriptions[subscription.kind].append(subscription)
        return subscription

    def off(self, subscription: Subscription) -> None:
        """Remove a subscription."""
        handlers = self._subscriptions.get(subscription.kind, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def listener_count(self, kind: EventKind) -> int:
        """Number of handlers registered for ``kind``."""
        return len(self._subscriptions.get(kind, []))

    def emit(self, kind: EventKind, **payload: Any) -> Event:
        """Dispatch an event to every handler registered for ``kind``."""
        event = Event(kind=EventKind(kind), payload=payload)

        for subscription in list(self._subscriptions.get(event.kind, [])):
            try:
                result = subscription.handler(event)
            except Exception:
                self._logger.exception("Error in event handler for %s", event.kind.value)
                continue

            if inspect.isawaitable(result):
                self._schedule(result, event)

        return event

    async def drain(self) -> None:
        """Wait until every scheduled coroutine handler has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, awaitable: Awaitable[None], event: Event) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._pending.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                self._logger.error(
                    "Error in event handler for %s",
                    event.kind.value,
                    exc_info=finished.exception(),
                )

        task.add_done_callback(_done)
