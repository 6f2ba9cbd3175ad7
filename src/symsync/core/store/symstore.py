"""
External symbol store command.

Wraps ``symstore.exe add`` (Debugging Tools for Windows). The command is a
black box: we build its arguments, wait for it, and look at the exit
status. Its output is kept only for diagnostics; the results of a run are
read back from the pointer files it updates.

    symstore.exe add /r /f <files> /s <store> /t <product> /v <version> /c <comment>
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from pathlib import Path

from pydantic import BaseModel, Field

from symsync.core.errors import OperationCancelledError, SymStoreError


# How often a running command is checked for cancellation or timeout
POLL_INTERVAL = 0.5

# Output is kept for diagnostics only; undecodable bytes are replaced
OUTPUT_ENCODING = "utf-8"


class SymStoreResult(BaseModel):
    """Outcome of a successful symbol store run."""

    command: list[str] = Field(description="Full command line that was run")
    output: str = Field(default="", description="Combined stdout and stderr")
    duration: float = Field(default=0.0, description="Wall time in seconds")


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode(OUTPUT_ENCODING, errors="replace")


class SymStoreTool:
    """
    Runner for the external symbol store command.

    Example:
        >>> tool = SymStoreTool("symstore.exe", timeout=3600)
        >>> result = tool.add(
        ...     store_path=Path(r"S:\\SymbolServer\\Titanium"),
        ...     product="Titanium",
        ...     version="4175.2-538",
        ...     comment="2017-07-04_14:44:14",
        ...     files=Path(r"S:\\SymbolServer\\Titanium\\000Unzip"),
        ... )
    """

    def __init__(
        self,
        executable: str = "symstore.exe",
        timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            executable: Path or name of the symbol store command
            timeout: Seconds before a run is killed (None waits forever)
            logger: Logger to use instead of the module logger
        """
        self.executable = executable
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def build_command(
        self,
        *,
        store_path: Path,
        product: str,
        version: str,
        comment: str,
        files: Path,
    ) -> list[str]:
        """Build the argument list for a recursive ``add`` transaction."""
        return [
            self.executable,
            "add",
            "/r",
            "/f",
            str(files),
            "/s",
            str(store_path),
            "/t",
            product,
            "/v",
            version,
            "/c",
            comment,
        ]

    def add(
        self,
        *,
        store_path: Path,
        product: str,
        version: str,
        comment: str,
        files: Path,
        cancel: threading.Event | None = None,
    ) -> SymStoreResult:
        """
        Add a tree of symbol files to the store and wait for completion.

        Args:
            store_path: Root of the branch in the symbol store
            product: Product name recorded in the store history
            version: Build version recorded in the store history
            comment: Free-text comment recorded in the store history
            files: Directory holding the extracted symbols
            cancel: Optional token; when set, the command is killed

        Returns:
            SymStoreResult with the captured output

        Raises:
            SymStoreError: If the command cannot be launched, times out, or
                exits non-zero
            OperationCancelledError: If `cancel` was set before completion
        """
        cmd = self.build_command(
            store_path=store_path,
            product=product,
            version=version,
            comment=comment,
            files=files,
        )
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"Symbol store run for {version} cancelled")

        self.logger.info("Running symbol store command for build %s", version)
        self.logger.debug("Command: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise SymStoreError(f"Failed to launch {self.executable}: {e}", command=cmd) from e

        raw: bytes | None = b""
        while True:
            try:
                raw, _ = process.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                cancelled = cancel is not None and cancel.is_set()
                expired = self.timeout is not None and time.monotonic() - start > self.timeout
                if not (cancelled or expired):
                    continue
                process.kill()
                raw, _ = process.communicate()
                if cancelled:
                    raise OperationCancelledError(
                        f"Symbol store run for {version} cancelled"
                    ) from None
                raise SymStoreError(
                    f"Symbol store command timed out after {self.timeout}s",
                    command=cmd,
                    output=_decode(raw),
                ) from None

        duration = time.monotonic() - start
        output = _decode(raw)
        self.logger.info("Symbol store output: %s", output.strip())
        self.logger.info("Symbol store complete in %.2fs", duration)

        if process.returncode != 0:
            self.logger.error(
                "Symbol store command failed with exit code %s", process.returncode
            )
            raise SymStoreError(
                f"Symbol store command failed with exit code {process.returncode}",
                command=cmd,
                output=output,
                returncode=process.returncode,
            )

        return SymStoreResult(command=cmd, output=output, duration=duration)
