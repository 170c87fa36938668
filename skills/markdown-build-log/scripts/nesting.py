"""Pairs finished events with their started events, one LIFO stack per kind."""

from __future__ import annotations

from typing import Any

from build_events import EventKind
from logger_errors import UnmatchedFinishError


class NestingSequencer:
    """Per-kind pending-start stacks.

    Starts and finishes are well nested within a kind, but not across kinds
    (tasks nest inside targets inside projects), so each kind gets its own
    stack and no cross-kind ordering is checked.
    """

    def __init__(self) -> None:
        self._pending: dict[EventKind, list[Any]] = {}

    def on_start(self, kind: EventKind, payload: Any) -> None:
        self._pending.setdefault(kind, []).append(payload)

    def peek(self, kind: EventKind, payload: Any) -> Any:
        """Return the start matching ``payload`` without removing it.

        Raises UnmatchedFinishError when no start of ``kind`` is pending.
        """
        stack = self._pending.get(kind)
        if not stack:
            raise UnmatchedFinishError(kind.value, _entity_name(payload))
        return stack[-1]

    def on_finish(self, kind: EventKind, payload: Any) -> Any:
        """Pop and return the start matching ``payload``."""
        start = self.peek(kind, payload)
        self._pending[kind].pop()
        return start

    def depth(self, kind: EventKind) -> int:
        return len(self._pending.get(kind, []))

    def pending(self) -> dict[EventKind, int]:
        """Number of unmatched starts per kind, omitting empty stacks."""
        return {kind: len(stack) for kind, stack in self._pending.items() if stack}


def _entity_name(payload: Any) -> str:
    for attr in ("project_file", "target_name", "task_name"):
        value = getattr(payload, attr, "")
        if value:
            return value
    return ""
