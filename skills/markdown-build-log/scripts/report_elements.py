"""Typed report elements appended by the logger and consumed by the renderer.

The logger never formats markup; it only chooses which elements to emit and
in what order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Style(str, Enum):
    PLAIN = "plain"
    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    EMPHASIS = "emphasis"


@dataclass(frozen=True)
class Heading:
    text: str
    level: int = 1


@dataclass(frozen=True)
class Anchor:
    id: str


@dataclass(frozen=True)
class Paragraph:
    text: str
    italic: bool = False


@dataclass(frozen=True)
class CodeSpan:
    text: str


@dataclass(frozen=True)
class Link:
    text: str
    target_id: str


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[object, ...], ...]


@dataclass(frozen=True)
class BarChart:
    bars: tuple[tuple[str, float], ...]
    unit: str = "s"


@dataclass(frozen=True)
class Marker:
    """A status line: ``prefix`` + styled ``subject`` + ``suffix``.

    ``level`` > 0 renders it as a heading of that level.
    """

    subject: str
    style: Style = Style.PLAIN
    prefix: str = ""
    suffix: str = ""
    level: int = 0


ReportElement = Heading | Anchor | Paragraph | CodeSpan | Table | BarChart | Marker


def property_table(rows: list[tuple[str, str]]) -> Table:
    return Table(headers=("Name", "Value"), rows=tuple(rows))
