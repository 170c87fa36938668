"""Render a sequence of report elements into Markdown/HTML outputs."""

from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Iterable, Sequence

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
)

CHART_WIDTH = 40

HTML_CSS = """
<style>
  /* ── Reset & base ─────────────────────────────────────────────────────── */
  *, *::before, *::after { box-sizing: border-box; }
  body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", "Noto Sans", Helvetica, Arial, sans-serif;
    background: #0d1117;
    color: #e6edf3;
    line-height: 1.6;
    padding: 2rem 1rem;
  }
  main { max-width: 960px; margin: 0 auto; }
  h1, h2, h3, h4, h5, h6 { color: #f0f6fc; margin: 1rem 0 .35rem; }
  code { background: #161b22; padding: .1rem .3rem; border-radius: 4px; }

  /* ── Status styles ────────────────────────────────────────────────────── */
  .status-success { color: #3fb950; }
  .status-failure { color: #f85149; }
  .status-warning { color: #d29922; }

  /* ── Tables ───────────────────────────────────────────────────────────── */
  table { width: 100%; border-collapse: collapse; font-size: .88rem; margin-bottom: 1rem; }
  thead tr { border-bottom: 1px solid #30363d; }
  th {
    text-align: left;
    padding: .45rem .75rem;
    font-size: .72rem;
    font-weight: 600;
    text-transform: uppercase;
    letter-spacing: .06em;
    color: #8b949e;
  }
  td {
    padding: .5rem .75rem;
    border-bottom: 1px solid #21262d;
    color: #c9d1d9;
    vertical-align: top;
  }
  tr:last-child td { border-bottom: none; }

  /* ── Bar charts ───────────────────────────────────────────────────────── */
  pre.chart { background: #161b22; padding: .75rem 1rem; border-radius: 6px; }
</style>
""".strip()

_MD_SPECIAL_RE = re.compile(r"([\\`*_\[\]<>|])")
# Block markers only take effect at the start of a line.
_MD_LEADING_MARKER_RE = re.compile(r"^(\s*)([#+-])", re.MULTILINE)
_MD_ORDERED_ITEM_RE = re.compile(r"^(\s*\d+)([.)])", re.MULTILINE)

_MD_COLORS = {
    Style.SUCCESS: "green",
    Style.FAILURE: "red",
    Style.WARNING: "orange",
}


def escape_markdown(text: str) -> str:
    return _MD_SPECIAL_RE.sub(r"\\\1", str(text))


def escape_markdown_line(text: str) -> str:
    """escape_markdown plus the block markers for text that opens a line."""
    escaped = escape_markdown(text)
    escaped = _MD_LEADING_MARKER_RE.sub(r"\1\\\2", escaped)
    return _MD_ORDERED_ITEM_RE.sub(r"\1\\\2", escaped)


def output_path(base: Path, fmt: str) -> Path:
    """``build.log.md`` + html -> ``build.log.html``; ``report`` + md -> ``report.md``."""
    if base.suffix.lower() in (".md", ".html", ".htm", ".markdown"):
        return base.with_suffix(f".{fmt}")
    return base.with_name(f"{base.name}.{fmt}")


def chart_lines(chart: BarChart) -> list[str]:
    if not chart.bars:
        return []
    label_width = max(len(label) for label, _ in chart.bars)
    peak = max(value for _, value in chart.bars)
    lines = []
    for label, value in chart.bars:
        size = int(round(CHART_WIDTH * value / peak)) if peak > 0 else 0
        lines.append(f"{label.ljust(label_width)} |{'#' * size} {value:.3f}{chart.unit}")
    return lines


# ── Markdown ─────────────────────────────────────────────────────────────────
def _md_cell(value: object) -> str:
    if isinstance(value, Link):
        return f"[{escape_markdown(value.text)}](#{value.target_id})"
    return escape_markdown(str(value)).replace("\n", " ")


def _md_table(table: Table) -> str:
    rows = [
        "| " + " | ".join(escape_markdown(h) for h in table.headers) + " |",
        "|" + "|".join(":---" for _ in table.headers) + "|",
    ]
    for row in table.rows:
        rows.append("| " + " | ".join(_md_cell(c) for c in row) + " |")
    return "\n".join(rows)


def _md_marker(marker: Marker) -> str:
    opens_line = marker.level == 0
    prefix = escape_markdown_line(marker.prefix) if opens_line else escape_markdown(marker.prefix)
    if opens_line and not marker.prefix:
        subject = escape_markdown_line(marker.subject)
    else:
        subject = escape_markdown(marker.subject)
    if marker.style in _MD_COLORS:
        subject = f"<font color='{_MD_COLORS[marker.style]}'>{subject}</font>"
    elif marker.style is Style.EMPHASIS:
        subject = f"*{subject}*"
    line = f"{prefix}{subject}{escape_markdown(marker.suffix)}"
    if marker.level > 0:
        return f"{'#' * marker.level} {line}"
    return line


def render_element_markdown(element: ReportElement) -> str:
    if isinstance(element, Heading):
        return f"{'#' * element.level} {escape_markdown(element.text)}"
    if isinstance(element, Anchor):
        return f'<a name="{element.id}"></a>'
    if isinstance(element, Paragraph):
        text = escape_markdown_line(element.text)
        if element.italic and text:
            return f"_{text}_"
        return text
    if isinstance(element, CodeSpan):
        return "`" + element.text.replace("`", "'") + "`"
    if isinstance(element, Table):
        return _md_table(element)
    if isinstance(element, BarChart):
        lines = chart_lines(element)
        if not lines:
            return "(none)"
        return "\n".join(f"    {line}" for line in lines)
    if isinstance(element, Marker):
        return _md_marker(element)
    raise TypeError(f"Unsupported report element: {type(element).__name__}")


def render_markdown(elements: Iterable[ReportElement]) -> str:
    blocks = [render_element_markdown(e) for e in elements]
    return "\n\n".join(b for b in blocks if b) + "\n"


# ── HTML ─────────────────────────────────────────────────────────────────────
def _html_cell(value: object) -> str:
    if isinstance(value, Link):
        return f'<a href="#{html.escape(value.target_id, quote=True)}">{html.escape(value.text)}</a>'
    return html.escape(str(value))


def _html_table(table: Table) -> str:
    head = "".join(f"<th>{html.escape(h)}</th>" for h in table.headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{_html_cell(c)}</td>" for c in row) + "</tr>"
        for row in table.rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _html_marker(marker: Marker) -> str:
    subject = html.escape(marker.subject)
    if marker.style is Style.EMPHASIS:
        subject = f"<em>{subject}</em>"
    elif marker.style is not Style.PLAIN:
        subject = f'<span class="status-{marker.style.value}">{subject}</span>'
    line = f"{html.escape(marker.prefix)}{subject}{html.escape(marker.suffix)}"
    if marker.level > 0:
        return f"<h{marker.level}>{line}</h{marker.level}>"
    return f"<p>{line}</p>"


def render_element_html(element: ReportElement) -> str:
    if isinstance(element, Heading):
        return f"<h{element.level}>{html.escape(element.text)}</h{element.level}>"
    if isinstance(element, Anchor):
        return f'<a id="{html.escape(element.id, quote=True)}"></a>'
    if isinstance(element, Paragraph):
        if not element.text:
            return ""
        text = html.escape(element.text)
        return f"<p><em>{text}</em></p>" if element.italic else f"<p>{text}</p>"
    if isinstance(element, CodeSpan):
        return f"<p><code>{html.escape(element.text)}</code></p>"
    if isinstance(element, Table):
        return _html_table(element)
    if isinstance(element, BarChart):
        lines = chart_lines(element)
        if not lines:
            return "<p>(none)</p>"
        return '<pre class="chart">' + html.escape("\n".join(lines)) + "</pre>"
    if isinstance(element, Marker):
        return _html_marker(element)
    raise TypeError(f"Unsupported report element: {type(element).__name__}")


def render_html(elements: Iterable[ReportElement], title: str = "Build Log") -> str:
    body = "\n".join(b for b in (render_element_html(e) for e in elements) if b)
    safe_title = html.escape(title)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{safe_title}</title>
  {HTML_CSS}
</head>
<body>
  <main class="container">
    {body}
  </main>
</body>
</html>
"""


def write_outputs(elements: Sequence[ReportElement], base: Path, formats: Iterable[str]) -> list[Path]:
    """Write one file per format next to ``base`` and return the paths written."""
    written: list[Path] = []
    base.parent.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        if fmt == "md":
            text = render_markdown(elements)
        elif fmt == "html":
            text = render_html(elements, title=base.stem)
        else:
            raise ValueError(f"Unsupported output format: {fmt}")
        path = output_path(base, fmt)
        path.write_text(text, encoding="utf-8")
        written.append(path)
    return written
