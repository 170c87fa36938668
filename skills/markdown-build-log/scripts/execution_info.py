"""Cumulative execution records per entity kind."""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any

from build_events import EventKind


@dataclass(frozen=True)
class ExecutionRecord:
    """Aggregated statistics for one named entity across the session.

    ``last_duration`` is the most recent invocation only;
    ``cumulative_duration`` is the sum over every invocation.
    """

    name: str
    cumulative_duration: timedelta
    last_duration: timedelta
    last_start: Any
    last_finish: Any
    invocations: int = 1


class DurationAccumulator:
    """One name -> ExecutionRecord store per kind.

    Stores keep first-insertion order, which the summaries rely on to break
    ties between equal durations.
    """

    def __init__(self) -> None:
        self._stores: dict[EventKind, dict[str, ExecutionRecord]] = {}

    def record_completion(self, kind: EventKind, name: str, start: Any, finish: Any) -> ExecutionRecord:
        duration = finish.timestamp - start.timestamp
        if duration <= timedelta(0):
            print(
                f"warning: suspicious {kind.value} duration {duration.total_seconds():.3f}s for {name!r}",
                file=sys.stderr,
            )

        store = self._stores.setdefault(kind, {})
        previous = store.get(name)
        if previous is None:
            record = ExecutionRecord(
                name=name,
                cumulative_duration=duration,
                last_duration=duration,
                last_start=start,
                last_finish=finish,
            )
        else:
            record = replace(
                previous,
                cumulative_duration=previous.cumulative_duration + duration,
                last_duration=duration,
                last_start=start,
                last_finish=finish,
                invocations=previous.invocations + 1,
            )
        store[name] = record
        return record

    def get(self, kind: EventKind, name: str) -> ExecutionRecord | None:
        return self._stores.get(kind, {}).get(name)

    def records(self, kind: EventKind) -> list[ExecutionRecord]:
        return list(self._stores.get(kind, {}).values())

    def ranked(self, kind: EventKind) -> list[ExecutionRecord]:
        """Records sorted by cumulative duration, longest first.

        ``sorted`` is stable, so equal durations keep encounter order.
        """
        return sorted(self.records(kind), key=lambda r: r.cumulative_duration, reverse=True)
