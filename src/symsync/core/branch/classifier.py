"""
Symbol classification helpers.

Pure functions deciding whether a symbol is excluded from publication and
which CPU architecture its path implies.
"""

from __future__ import annotations

from collections.abc import Iterable

from symsync.core.branch.models import Arch

# Substrings marking a 64-bit build output directory
X64_MARKERS = ("x64", "amd64")


def is_excluded(name: str, exclude_list: Iterable[str]) -> bool:
    """
    Check whether a symbol name is in the exclude list.

    Comparison is case-insensitive on both sides.

    Args:
        name: Symbol file name (e.g. "cbt_client.pdb")
        exclude_list: Configured names to skip

    Returns:
        True if the name must not produce a Symbol
    """
    lowered = name.lower()
    return any(lowered == entry.lower() for entry in exclude_list)


def detect_arch(path: str) -> Arch:
    """
    Guess the architecture of a symbol from its path.

    Any 64-bit marker anywhere in the path (case-insensitive) yields x64;
    everything else, architecture-neutral paths included, is x86.

    Example:
        >>> detect_arch(r"\\Release\\AMD64\\foo.pdb")
        <Arch.X64: 'x64'>
        >>> detect_arch(r"\\Release\\foo.pdb")
        <Arch.X86: 'x86'>
    """
    lowered = path.lower()
    for marker in X64_MARKERS:
        if marker in lowered:
            return Arch.X64
    return Arch.X86
