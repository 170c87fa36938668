"""Anchor ids linking the project table of contents to the report body."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from pathlib import PureWindowsPath

_HASH_BYTES = 4
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def _stable_hash(text: str) -> int:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return int.from_bytes(digest[:_HASH_BYTES], "big")


def link_id_for(project_path: str, start_timestamp: datetime) -> str:
    """Return ``<basename-without-extension>-<integer>`` for a project run.

    Deterministic across runs: hashlib rather than ``hash()``, which is
    salted per process. Two different runs can still collide; that only
    breaks a cross-link.
    """
    combined = (_stable_hash(project_path) * 31 + _stable_hash(start_timestamp.isoformat())) & 0xFFFFFFFF
    # PureWindowsPath splits on both / and \, build engines report either.
    stem = PureWindowsPath(project_path).stem if project_path else ""
    stem = _UNSAFE_RE.sub("-", stem).strip("-") or "project"
    return f"{stem}-{combined}"
