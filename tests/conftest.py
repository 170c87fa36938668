"""
Test suite for markdown-build-log.

Focus: event pairing, duration aggregation, report assembly, configuration.
Strategy: drive the logger with in-memory events, no live build engine; use
tmp_path for anything written to disk.

Run: pytest tests/ -v
"""

import sys
from pathlib import Path

# Add scripts to path for imports
sys.path.insert(
    0,
    str(
        Path(__file__).parent.parent
        / "skills"
        / "markdown-build-log"
        / "scripts"
    ),
)
