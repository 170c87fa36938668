"""Aggregates build lifecycle events into an ordered Markdown report.

A ``Session`` is created when the build starts and threaded through one
handler per event type. Each handler validates the event before touching the
session, so an event that raises a ProtocolViolation leaves the body exactly
as it was. ``finalize`` runs once, on build finished: it ranks the target
and task summaries and prepends the project table of contents.

``MarkdownLogger`` is the host-facing adapter: it subscribes the handlers to
an EventSource and writes the finished document on shutdown.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Callable

from build_events import (
    BuildError,
    BuildEvent,
    BuildFinished,
    BuildMessage,
    BuildStarted,
    BuildWarning,
    EventKind,
    MessageImportance,
    ProjectFinished,
    ProjectStarted,
    TargetFinished,
    TargetStarted,
    TaskFinished,
    TaskStarted,
    property_rows,
)
from event_source import EventSource
from execution_info import DurationAccumulator, ExecutionRecord
from link_ids import link_id_for
from logger_errors import SessionStateError, TimestampMismatchError, UnknownImportanceError
from logger_params import LoggerConfig, TargetNamesPolicy, Verbosity, parse_parameters
from nesting import NestingSequencer
from render_report import write_outputs
from report_elements import (
    Anchor,
    BarChart,
    CodeSpan,
    Heading,
    Link,
    Marker,
    Paragraph,
    ReportElement,
    Style,
    Table,
    property_table,
)

NO_TARGETS_PLACEHOLDER = "(default targets)"


class SessionState(str, Enum):
    NOT_STARTED = "not started"
    BUILD_RUNNING = "running"
    BUILD_FINISHED = "finished"


@dataclass(frozen=True)
class ProjectSummaryEntry:
    name: str
    link_id: str
    succeeded: bool
    duration: timedelta
    start_timestamp: datetime
    target_names: str


@dataclass
class Session:
    config: LoggerConfig
    state: SessionState = SessionState.BUILD_RUNNING
    body: list[ReportElement] = field(default_factory=list)
    sequencer: NestingSequencer = field(default_factory=NestingSequencer)
    accumulator: DurationAccumulator = field(default_factory=DurationAccumulator)
    # Ordered by first finish; a re-entered project keeps its slot.
    projects: dict[str, ProjectSummaryEntry] = field(default_factory=dict)
    document: tuple[ReportElement, ...] | None = None

    def is_verbosity_at_least(self, level: Verbosity) -> bool:
        return self.config.is_verbosity_at_least(level)

    def emit(self, *elements: ReportElement) -> None:
        self.body.extend(elements)


def format_timestamp(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(duration: timedelta) -> str:
    return f"{duration.total_seconds():.3f}s"


def _require_running(session: Session, event: BuildEvent) -> None:
    if session.state is not SessionState.BUILD_RUNNING:
        raise SessionStateError(session.state.value, type(event).__name__)


def _event_table(event: BuildEvent) -> Table:
    return property_table(property_rows(event))


def _pop_start(session: Session, kind: EventKind, event: BuildEvent, name_attr: str):
    """Pop the start paired with ``event`` once its duration is known to be computable."""
    start = session.sequencer.peek(kind, event)
    if (start.timestamp.tzinfo is None) != (event.timestamp.tzinfo is None):
        raise TimestampMismatchError(kind.value, getattr(start, name_attr))
    return session.sequencer.on_finish(kind, event)


# ── Build ─────────────────────────────────────────────────────────────────────
def start_session(config: LoggerConfig, event: BuildStarted) -> Session:
    session = Session(config=config)
    session.emit(Heading(f"Build Started {format_timestamp(event.timestamp)}", 1))
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        env_rows = tuple((k, event.environment[k]) for k in sorted(event.environment))
        session.emit(Table(headers=("Name", "Value"), rows=env_rows), _event_table(event))
    return session


def _summary_chart(records: list[ExecutionRecord]) -> BarChart:
    return BarChart(bars=tuple((r.name, r.cumulative_duration.total_seconds()) for r in records))


def _toc_elements(session: Session) -> list[ReportElement]:
    entries = sorted(session.projects.values(), key=lambda e: e.start_timestamp)
    toc: list[ReportElement] = [Heading("Projects", 1)]
    if not entries:
        toc.append(Paragraph("(none)"))
        return toc
    rows = tuple(
        (
            Link(entry.name, entry.link_id),
            "Succeeded" if entry.succeeded else "Failed",
            format_duration(entry.duration),
            entry.target_names or NO_TARGETS_PLACEHOLDER,
        )
        for entry in entries
    )
    toc.append(Table(headers=("Project", "Status", "Duration", "Targets"), rows=rows))
    return toc


def finalize(session: Session, event: BuildFinished) -> Session:
    _require_running(session, event)

    pending = session.sequencer.pending()
    if pending:
        detail = ", ".join(f"{kind.value}={count}" for kind, count in pending.items())
        print(f"warning: build finished with unmatched starts ({detail}); they are not recorded", file=sys.stderr)

    session.emit(Heading("Build Finished", 1))
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(_event_table(event))

    session.emit(Heading("Target summary", 2), _summary_chart(session.accumulator.ranked(EventKind.TARGET)))
    session.emit(Heading("Task summary", 2), _summary_chart(session.accumulator.ranked(EventKind.TASK)))

    session.document = tuple(_toc_elements(session) + session.body)
    session.state = SessionState.BUILD_FINISHED
    return session


# ── Projects ──────────────────────────────────────────────────────────────────
def handle_project_started(session: Session, event: ProjectStarted) -> Session:
    _require_running(session, event)
    session.sequencer.on_start(EventKind.PROJECT, event)

    session.emit(
        Anchor(link_id_for(event.project_file, event.timestamp)),
        Heading(f"Project Started: {event.project_file}", 2),
        Paragraph(event.message, italic=True),
        CodeSpan(f"{format_timestamp(event.timestamp)} | targets=({event.target_names}) | {event.project_file}"),
    )
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(
            Heading("Global properties", 3),
            Table(headers=("Name", "Value"), rows=tuple(event.global_properties.items())),
            Heading("Initial Properties", 4),
            Table(headers=("Name", "Value"), rows=tuple(event.properties.items())),
        )
    return session


def _merge_target_names(earlier: str, later: str, policy: TargetNamesPolicy) -> str:
    if policy is TargetNamesPolicy.EARLIEST:
        return earlier
    if policy is TargetNamesPolicy.LATEST:
        return later
    names: list[str] = []
    for raw in (earlier, later):
        names.extend(n.strip() for n in raw.split(";") if n.strip())
    return ";".join(dict.fromkeys(names))


def _merge_project_entry(
    prior: ProjectSummaryEntry | None,
    current: ProjectSummaryEntry,
    policy: TargetNamesPolicy,
) -> ProjectSummaryEntry:
    if prior is None:
        return current
    # Nested re-entry finishes the later start first, so order the pair by start time.
    earlier, later = (prior, current) if prior.start_timestamp <= current.start_timestamp else (current, prior)
    return replace(
        earlier,
        succeeded=prior.succeeded and current.succeeded,
        duration=current.duration,
        target_names=_merge_target_names(earlier.target_names, later.target_names, policy),
    )


def handle_project_finished(session: Session, event: ProjectFinished) -> Session:
    _require_running(session, event)
    start = _pop_start(session, EventKind.PROJECT, event, "project_file")

    record = session.accumulator.record_completion(EventKind.PROJECT, start.project_file, start, event)
    current = ProjectSummaryEntry(
        name=start.project_file,
        link_id=link_id_for(start.project_file, start.timestamp),
        succeeded=event.succeeded,
        duration=record.cumulative_duration,
        start_timestamp=start.timestamp,
        target_names=start.target_names,
    )
    session.projects[current.name] = _merge_project_entry(
        session.projects.get(current.name), current, session.config.target_names_policy
    )

    session.emit(Heading(f"Project Finished: {event.message}", 2))
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(_event_table(event))
    return session


# ── Targets ───────────────────────────────────────────────────────────────────
def handle_target_started(session: Session, event: TargetStarted) -> Session:
    _require_running(session, event)
    session.sequencer.on_start(EventKind.TARGET, event)
    session.emit(Heading(event.target_name, 4))
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(_event_table(event))
    return session


def handle_target_finished(session: Session, event: TargetFinished) -> Session:
    _require_running(session, event)
    start = _pop_start(session, EventKind.TARGET, event, "target_name")
    session.accumulator.record_completion(EventKind.TARGET, start.target_name, start, event)

    session.emit(
        Marker(
            subject=event.target_name,
            style=Style.SUCCESS if event.succeeded else Style.FAILURE,
            suffix=" Target Finished",
            level=4,
        ),
        Paragraph(event.message),
    )
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(_event_table(event))
    return session


# ── Tasks ─────────────────────────────────────────────────────────────────────
def handle_task_started(session: Session, event: TaskStarted) -> Session:
    _require_running(session, event)
    session.sequencer.on_start(EventKind.TASK, event)
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(Heading(f"Task Started: {event.message}", 6))
    if session.is_verbosity_at_least(Verbosity.DIAGNOSTIC):
        session.emit(_event_table(event))
    return session


def handle_task_finished(session: Session, event: TaskFinished) -> Session:
    _require_running(session, event)
    start = _pop_start(session, EventKind.TASK, event, "task_name")
    session.accumulator.record_completion(EventKind.TASK, start.task_name, start, event)

    if not event.succeeded:
        session.emit(
            Marker(subject=event.task_name, style=Style.FAILURE, suffix=" task failed."),
            Paragraph(event.message),
        )
    elif session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(Heading(f"Task Finished: {event.message}", 6))
    if session.is_verbosity_at_least(Verbosity.DETAILED):
        session.emit(_event_table(event))
    return session


# ── Errors, warnings, messages ────────────────────────────────────────────────
def _location(event: BuildError | BuildWarning) -> str:
    if not event.file:
        return ""
    location = f"{event.file}({event.line_number},{event.column_number})"
    return f"{location}: {event.code}" if event.code else location


def _handle_diagnostic(session: Session, event: BuildError | BuildWarning, label: str, style: Style) -> Session:
    _require_running(session, event)
    session.emit(Marker(subject=event.message, style=style, prefix=f"{label}: ", level=3))
    location = _location(event)
    if location:
        session.emit(Paragraph(location))
    session.emit(_event_table(event))
    return session


def handle_error(session: Session, event: BuildError) -> Session:
    return _handle_diagnostic(session, event, "ERROR", Style.FAILURE)


def handle_warning(session: Session, event: BuildWarning) -> Session:
    return _handle_diagnostic(session, event, "Warning", Style.WARNING)


def handle_message(session: Session, event: BuildMessage) -> Session:
    _require_running(session, event)
    if not isinstance(event.importance, MessageImportance):
        raise UnknownImportanceError(event.importance)

    if event.importance is MessageImportance.LOW and not session.is_verbosity_at_least(Verbosity.DETAILED):
        return session
    style = Style.EMPHASIS if event.importance is MessageImportance.HIGH else Style.PLAIN
    session.emit(Marker(subject=format_timestamp(event.timestamp), style=style, prefix=f"{event.message} "))
    return session


HANDLERS: dict[type, Callable[[Session, BuildEvent], Session]] = {
    BuildFinished: finalize,
    ProjectStarted: handle_project_started,
    ProjectFinished: handle_project_finished,
    TargetStarted: handle_target_started,
    TargetFinished: handle_target_finished,
    TaskStarted: handle_task_started,
    TaskFinished: handle_task_finished,
    BuildError: handle_error,
    BuildWarning: handle_warning,
    BuildMessage: handle_message,
}


class MarkdownLogger:
    """Host adapter: subscribes to an EventSource and writes the report on shutdown."""

    def __init__(self, parameters: str | None = None, config: LoggerConfig | None = None) -> None:
        self.parameters = parameters
        self.config = config
        self.session: Session | None = None

    def initialize(self, event_source: EventSource) -> None:
        if self.config is None:
            self.config = parse_parameters(self.parameters)
        event_source.subscribe(BuildStarted, self.on_build_started)
        for event_type in HANDLERS:
            event_source.subscribe(event_type, self.on_event)

    def on_build_started(self, event: BuildStarted) -> None:
        if self.session is not None:
            raise SessionStateError(self.session.state.value, type(event).__name__)
        if self.config is None:
            self.config = parse_parameters(self.parameters)
        self.session = start_session(self.config, event)

    def on_event(self, event: BuildEvent) -> None:
        if self.session is None:
            raise SessionStateError(SessionState.NOT_STARTED.value, type(event).__name__)
        self.session = HANDLERS[type(event)](self.session, event)

    @property
    def document(self) -> tuple[ReportElement, ...] | None:
        return self.session.document if self.session else None

    def shutdown(self) -> list[Path]:
        """Write the finished document in every configured format.

        Refuses to write when the build never finished, so a partial body is
        never presented as a complete report.
        """
        if self.session is None or self.session.document is None:
            state = self.session.state.value if self.session else SessionState.NOT_STARTED.value
            raise SessionStateError(state, "Shutdown")
        base = self.session.config.log_file
        return write_outputs(self.session.document, base, self.session.config.formats)
