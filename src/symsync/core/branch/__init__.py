"""
Branch registry module.

Tracks the builds published to the symbol store for one branch, parses
the history and symbol index files the store maintains, and publishes new
builds from the build server.
"""

from symsync.core.branch.builder import BranchBuilder
from symsync.core.branch.classifier import detect_arch, is_excluded
from symsync.core.branch.history import parse_history_line
from symsync.core.branch.index import IndexEntry, SeenHashes, parse_index_line
from symsync.core.branch.models import Arch, Branch, Build, Symbol

__all__ = [
    "Arch",
    "Branch",
    "BranchBuilder",
    "Build",
    "IndexEntry",
    "SeenHashes",
    "Symbol",
    "detect_arch",
    "is_excluded",
    "parse_history_line",
    "parse_index_line",
]
