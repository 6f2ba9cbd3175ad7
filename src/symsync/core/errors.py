"""
Exceptions raised by the branch engine.

Plain I/O failures are not wrapped: they propagate as `OSError`
(usually `FileNotFoundError`) so callers can tell them apart from
engine conditions.
"""

from __future__ import annotations


class SymSyncError(Exception):
    """Base exception for symsync engine errors."""

    pass


class BuildNotExistError(SymSyncError):
    """Symbols were requested for a build the registry does not know."""

    def __init__(self, build_id: str, branch: str = "") -> None:
        super().__init__(f"Build {build_id} does not exist for branch {branch or '?'}")
        self.build_id = build_id
        self.branch = branch


class BranchNotInitializedError(SymSyncError):
    """An operation needs store or build paths that are not configured."""

    pass


class InvalidStorePathError(SymSyncError):
    """The branch path on the local symbol store is not a valid store root."""

    def __init__(self, path: str, branch: str = "") -> None:
        super().__init__(f"Invalid symbol store path {path} for branch {branch or '?'}")
        self.path = path
        self.branch = branch


class InvalidBuildServerPathError(SymSyncError):
    """The branch path on the build server is missing or unreadable."""

    def __init__(self, path: str, branch: str = "") -> None:
        super().__init__(f"Invalid build server path {path} for branch {branch or '?'}")
        self.path = path
        self.branch = branch


class CorruptSnapshotError(SymSyncError):
    """The saved branch snapshot cannot be decoded."""

    def __init__(self, path: str, branch: str = "") -> None:
        super().__init__(f"Corrupt branch snapshot {path} for branch {branch or '?'}")
        self.path = path
        self.branch = branch


class SymStoreError(SymSyncError):
    """The external symbol store command failed to launch or exited non-zero."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        output: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.output = output
        self.returncode = returncode


class OperationCancelledError(SymSyncError):
    """A cancellation token was set while a sync was in progress."""

    pass


class HandlerError(SymSyncError):
    """
    A per-record callback raised while parsing.

    The original exception is chained as ``__cause__``; ``parsed`` holds
    the number of records processed before parsing stopped.
    """

    def __init__(self, message: str, parsed: int) -> None:
        super().__init__(message)
        self.parsed = parsed
