"""
Single-line pointer files.

``latestbuild.txt`` on the build server and in ``000Admin`` records a build
version; ``lastid.txt`` in ``000Admin`` records the last build id assigned
by the store. Only the first line counts, trimmed of spaces and newlines.
"""

from __future__ import annotations

from pathlib import Path


def read_pointer(path: Path) -> str:
    """
    Read the value of a pointer file.

    Raises:
        OSError: If the file cannot be opened
    """
    with open(path, encoding="utf-8") as f:
        first = f.readline()
    return first.strip(" \r\n")


def write_pointer(path: Path, value: str) -> None:
    """Replace the content of a pointer file with `value`."""
    path.write_text(value, encoding="utf-8")
