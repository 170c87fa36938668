"""Explicit callback registration between a build engine and its loggers."""

from __future__ import annotations

from typing import Any, Callable

from build_events import (
    BuildError,
    BuildFinished,
    BuildMessage,
    BuildStarted,
    BuildWarning,
    ProjectFinished,
    ProjectStarted,
    TargetFinished,
    TargetStarted,
    TaskFinished,
    TaskStarted,
)
from logger_errors import ProtocolViolation

EVENT_TYPES: tuple[type, ...] = (
    BuildStarted,
    BuildFinished,
    ProjectStarted,
    ProjectFinished,
    TargetStarted,
    TargetFinished,
    TaskStarted,
    TaskFinished,
    BuildError,
    BuildWarning,
    BuildMessage,
)

Handler = Callable[[Any], None]


class EventSource:
    """Delivers events to subscribed handlers, one at a time, in arrival order.

    Handlers run synchronously on the caller's thread; an exception raised by
    a handler propagates to whoever raised the event.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = {t: [] for t in EVENT_TYPES}
        self.events_raised = 0

    def subscribe(self, event_type: type, handler: Handler) -> None:
        if event_type not in self._handlers:
            raise ValueError(f"Unsupported event type: {event_type.__name__}")
        self._handlers[event_type].append(handler)

    def raise_event(self, event: Any) -> None:
        handlers = self._handlers.get(type(event))
        if handlers is None:
            raise ProtocolViolation(f"Unsupported event type: {type(event).__name__}")
        self.events_raised += 1
        for handler in handlers:
            handler(event)
