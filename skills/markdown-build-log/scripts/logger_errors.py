"""Exception types raised by the build log aggregator."""

from __future__ import annotations


class LoggerError(RuntimeError):
    """Raised when the logger cannot continue with its current inputs."""


class ProtocolViolation(LoggerError):
    """The event source and the aggregator have desynchronized.

    Fatal to the session: the host decides whether to abort the build or to
    continue without a report.
    """


class UnmatchedFinishError(ProtocolViolation):
    """A finished event arrived with no pending start of the same kind."""

    def __init__(self, kind: str, name: str = "") -> None:
        self.kind = kind
        self.name = name
        detail = f" ({name})" if name else ""
        super().__init__(f"{kind} finished without a matching start{detail}")


class TimestampMismatchError(ProtocolViolation):
    """A finish timestamp cannot be compared with its start (naive vs timezone-aware)."""

    def __init__(self, kind: str, name: str = "") -> None:
        self.kind = kind
        self.name = name
        detail = f" ({name})" if name else ""
        super().__init__(f"{kind} finish timestamp is not comparable with its start{detail}")


class UnknownImportanceError(ProtocolViolation):
    """A message event carried an importance outside High/Normal/Low."""

    def __init__(self, importance: object) -> None:
        self.importance = importance
        super().__init__(f"Unknown message importance {importance!r}")


class InvalidVerbosityError(ProtocolViolation):
    """The configured verbosity is not one of the known names or abbreviations."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unable to process the verbosity: {value}")


class SessionStateError(ProtocolViolation):
    """An event arrived that the session cannot accept in its current state."""

    def __init__(self, state: str, event_name: str) -> None:
        self.state = state
        self.event_name = event_name
        super().__init__(f"{event_name} received while session is {state}")
