"""
Per-build symbol index parsing.

For every build the symbol store tool writes ``000Admin/<build id>``, one
line per file it stored:

    "cbt_client.pdb\\8E3868FEE1FA4AC8A42D0FACA65E0BE41","S:\\temp\\000Unzip\\cbt_client.pdb"

The first field is ``<name>\\<hash>``, the second the path the file was
stored from. Paths are made relative by cutting everything up to and
including the staging directory marker.
"""

from __future__ import annotations

from typing import NamedTuple

STAGING_MARKER = "000Unzip"


class IndexEntry(NamedTuple):
    """A raw, well-formed line of a symbol index file."""

    name: str
    hash: str
    path: str


class SeenHashes:
    """
    Set of symbol hashes already emitted by one parsing pass.

    The first occurrence of a hash wins; later ones are duplicates.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __contains__(self, symbol_hash: str) -> bool:
        return symbol_hash in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, symbol_hash: str) -> bool:
        """Record a hash; returns False if it had already been seen."""
        if symbol_hash in self._seen:
            return False
        self._seen.add(symbol_hash)
        return True


def strip_staging_prefix(path: str, marker: str = STAGING_MARKER) -> str:
    """Drop everything up to and including `marker`, if present."""
    idx = path.find(marker)
    if idx == -1:
        return path
    return path[idx + len(marker) :]


def parse_index_line(line: str) -> IndexEntry | None:
    """
    Split one index line into name, hash and store-relative path.

    Returns:
        IndexEntry, or None when the line has fewer than two fields or the
        first field is not exactly ``<name>\\<hash>``
    """
    line = line.strip("\r\n")
    fields = line.split(",")
    if len(fields) < 2:
        return None

    parts = fields[0].strip('"').split("\\")
    if len(parts) != 2:
        return None

    name, symbol_hash = parts
    path = strip_staging_prefix(fields[1].strip('"'))
    return IndexEntry(name=name, hash=symbol_hash, path=path)
