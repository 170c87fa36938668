#!/usr/bin/env python3
"""Replay a JSONL build event log through the Markdown logger.

Each line is one event: ``{"event": "target_finished", "timestamp":
"2024-01-15T10:00:02", "target_name": "Build", "succeeded": true, ...}``.
Field names match the payload dataclasses in build_events.py.

Usage:
  python3 replay_build_log.py --events build-events.jsonl
  python3 replay_build_log.py --events build-events.jsonl --parameters "L=out/build.md;V=diag" --formats md,html
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from build_events import (
    BuildError,
    BuildEvent,
    BuildFinished,
    BuildMessage,
    BuildStarted,
    BuildWarning,
    MessageImportance,
    ProjectFinished,
    ProjectStarted,
    TargetFinished,
    TargetStarted,
    TaskFinished,
    TaskStarted,
)
from event_source import EventSource
from logger_errors import LoggerError, ProtocolViolation
from logger_params import parse_formats, parse_parameters
from markdown_logger import MarkdownLogger

EVENT_NAMES: dict[str, type] = {
    "build_started": BuildStarted,
    "build_finished": BuildFinished,
    "project_started": ProjectStarted,
    "project_finished": ProjectFinished,
    "target_started": TargetStarted,
    "target_finished": TargetFinished,
    "task_started": TaskStarted,
    "task_finished": TaskFinished,
    "error": BuildError,
    "warning": BuildWarning,
    "message": BuildMessage,
}


def parse_timestamp(raw: Any) -> datetime:
    """Parse an ISO-8601 timestamp; values without an offset are read as UTC."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"timestamp must be an ISO-8601 string, got {raw!r}")
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_importance(raw: Any) -> Any:
    # Unknown values pass through so the logger can reject them as a protocol violation.
    try:
        return MessageImportance(str(raw).strip().lower())
    except ValueError:
        return raw


def event_from_record(record: dict) -> BuildEvent:
    name = record.get("event")
    event_type = EVENT_NAMES.get(name) if isinstance(name, str) else None
    if event_type is None:
        raise ValueError(f"unknown event {name!r}")

    known = {f.name for f in fields(event_type)}
    kwargs = {k: v for k, v in record.items() if k != "event"}
    unknown = sorted(set(kwargs) - known)
    if unknown:
        raise ValueError(f"unknown field(s) for {name}: {', '.join(unknown)}")

    kwargs["timestamp"] = parse_timestamp(kwargs.get("timestamp"))
    kwargs.setdefault("message", "")
    if event_type is BuildMessage and "importance" in kwargs:
        kwargs["importance"] = parse_importance(kwargs["importance"])
    return event_type(**kwargs)


def iter_events(path: Path) -> Iterator[BuildEvent]:
    with path.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                if not isinstance(record, dict):
                    raise ValueError("event must be a JSON object")
                yield event_from_record(record)
            except (ValueError, TypeError) as exc:
                raise ValueError(f"{path}:{lineno}: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a JSONL build event log into a Markdown/HTML report.")
    parser.add_argument("--events", required=True, type=Path, help="JSONL file, one build event per line")
    parser.add_argument(
        "--parameters",
        default="",
        help='Logger parameters, e.g. "LOGFILE=build.log.md;VERBOSITY=detailed"',
    )
    parser.add_argument("--formats", default=None, help="Comma-separated output formats: md,html")
    args = parser.parse_args(argv)

    t0 = time.monotonic()
    try:
        config = parse_parameters(args.parameters)
        if args.formats:
            config = replace(config, formats=parse_formats(args.formats))
        events = list(iter_events(args.events))

        source = EventSource()
        logger = MarkdownLogger(config=config)
        logger.initialize(source)
        for event in events:
            source.raise_event(event)
        written = logger.shutdown()
    except ProtocolViolation as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (LoggerError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    elapsed = time.monotonic() - t0
    for path in written:
        print(path)
    print(f"  {source.events_raised} events · {len(written)} file(s) · {elapsed:.2f}s", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
