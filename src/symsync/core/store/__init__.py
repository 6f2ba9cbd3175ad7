"""
Symbol store access.

Pointer files, symbol archive staging, and the external symbol store
command. The engine never writes to the store tree itself; only the
external command does.
"""

from symsync.core.store.archive import copy_archive, extract_archive
from symsync.core.store.pointers import read_pointer, write_pointer
from symsync.core.store.symstore import SymStoreResult, SymStoreTool

__all__ = [
    "SymStoreResult",
    "SymStoreTool",
    "copy_archive",
    "extract_archive",
    "read_pointer",
    "write_pointer",
]
