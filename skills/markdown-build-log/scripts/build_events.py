"""Lifecycle event payloads delivered by the build engine."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class EventKind(str, Enum):
    BUILD = "build"
    PROJECT = "project"
    TARGET = "target"
    TASK = "task"


class MessageImportance(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


@dataclass(frozen=True)
class BuildEvent:
    message: str
    timestamp: datetime
    sender_name: str = ""
    help_keyword: str = ""


@dataclass(frozen=True)
class BuildStarted(BuildEvent):
    environment: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BuildFinished(BuildEvent):
    succeeded: bool = True


@dataclass(frozen=True)
class ProjectStarted(BuildEvent):
    project_file: str = ""
    target_names: str = ""
    global_properties: Mapping[str, str] = field(default_factory=dict)
    properties: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectFinished(BuildEvent):
    project_file: str = ""
    succeeded: bool = True


@dataclass(frozen=True)
class TargetStarted(BuildEvent):
    target_name: str = ""
    project_file: str = ""
    target_file: str = ""


@dataclass(frozen=True)
class TargetFinished(BuildEvent):
    target_name: str = ""
    project_file: str = ""
    target_file: str = ""
    succeeded: bool = True


@dataclass(frozen=True)
class TaskStarted(BuildEvent):
    task_name: str = ""
    project_file: str = ""
    task_file: str = ""


@dataclass(frozen=True)
class TaskFinished(BuildEvent):
    task_name: str = ""
    project_file: str = ""
    task_file: str = ""
    succeeded: bool = True


@dataclass(frozen=True)
class BuildDiagnostic(BuildEvent):
    code: str = ""
    file: str = ""
    line_number: int = 0
    column_number: int = 0
    subcategory: str = ""
    project_file: str = ""


@dataclass(frozen=True)
class BuildError(BuildDiagnostic):
    pass


@dataclass(frozen=True)
class BuildWarning(BuildDiagnostic):
    pass


@dataclass(frozen=True)
class BuildMessage(BuildEvent):
    # Not validated here: the logger rejects unknown values when it handles the event.
    importance: Any = MessageImportance.NORMAL


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Mapping):
        return f"({len(value)} entries)"
    return str(value)


def property_rows(event: BuildEvent) -> list[tuple[str, str]]:
    """Return the event's fields as (name, value) rows for a property table."""
    rows: list[tuple[str, str]] = []
    for f in fields(event):
        rows.append((f.name, _format_value(getattr(event, f.name))))
    return rows
