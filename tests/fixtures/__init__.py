"""
Shared event factories for markdown-build-log tests.

Timestamps are expressed as whole seconds after a fixed build start so that
durations in assertions read as plain numbers.
"""

from datetime import datetime, timedelta
from typing import Any

BASE_TIME = datetime(2024, 1, 15, 10, 0, 0)


def at(seconds: float) -> datetime:
    """Return BASE_TIME + ``seconds``."""
    return BASE_TIME + timedelta(seconds=seconds)


def build_started(t: float = 0, **overrides: Any):
    from build_events import BuildStarted

    data = {"message": "Build started.", "timestamp": at(t), "environment": {"PATH": "/usr/bin"}}
    data.update(overrides)
    return BuildStarted(**data)


def build_finished(t: float, succeeded: bool = True, **overrides: Any):
    from build_events import BuildFinished

    data = {"message": "Build succeeded." if succeeded else "Build FAILED.", "timestamp": at(t), "succeeded": succeeded}
    data.update(overrides)
    return BuildFinished(**data)


def project_started(path: str, t: float, target_names: str = "", **overrides: Any):
    from build_events import ProjectStarted

    data = {
        "message": f'Project "{path}" (default targets):',
        "timestamp": at(t),
        "project_file": path,
        "target_names": target_names,
        "global_properties": {"Configuration": "Debug"},
        "properties": {"OutDir": "bin/"},
    }
    data.update(overrides)
    return ProjectStarted(**data)


def project_finished(path: str, t: float, succeeded: bool = True, **overrides: Any):
    from build_events import ProjectFinished

    data = {
        "message": f'Done building project "{path}".',
        "timestamp": at(t),
        "project_file": path,
        "succeeded": succeeded,
    }
    data.update(overrides)
    return ProjectFinished(**data)


def target_started(name: str, t: float, **overrides: Any):
    from build_events import TargetStarted

    data = {"message": f'Target "{name}" started.', "timestamp": at(t), "target_name": name}
    data.update(overrides)
    return TargetStarted(**data)


def target_finished(name: str, t: float, succeeded: bool = True, **overrides: Any):
    from build_events import TargetFinished

    data = {
        "message": f'Done building target "{name}".',
        "timestamp": at(t),
        "target_name": name,
        "succeeded": succeeded,
    }
    data.update(overrides)
    return TargetFinished(**data)


def task_started(name: str, t: float, **overrides: Any):
    from build_events import TaskStarted

    data = {"message": f'Task "{name}"', "timestamp": at(t), "task_name": name}
    data.update(overrides)
    return TaskStarted(**data)


def task_finished(name: str, t: float, succeeded: bool = True, **overrides: Any):
    from build_events import TaskFinished

    data = {
        "message": f'Done executing task "{name}".',
        "timestamp": at(t),
        "task_name": name,
        "succeeded": succeeded,
    }
    data.update(overrides)
    return TaskFinished(**data)


def message(text: str, t: float, importance: Any = None, **overrides: Any):
    from build_events import BuildMessage, MessageImportance

    data = {
        "message": text,
        "timestamp": at(t),
        "importance": MessageImportance.NORMAL if importance is None else importance,
    }
    data.update(overrides)
    return BuildMessage(**data)


def make_config(verbosity: str = "normal", **overrides: Any):
    """LoggerConfig built from a parameter string, independent of any .env file."""
    from dataclasses import replace

    from logger_params import parse_parameters

    config = parse_parameters(f"VERBOSITY={verbosity}", env={})
    return replace(config, **overrides) if overrides else config
