"""
Symbol archive staging.

Copies the zipped symbols of a build from the build server into a local
staging directory and unpacks them there.
"""

from __future__ import annotations

import logging
import shutil
import sys
import threading
import time
import zipfile
from pathlib import Path

from symsync.core.errors import OperationCancelledError

module_logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def copy_archive(
    source: Path,
    target: Path,
    *,
    cancel: threading.Event | None = None,
    logger: logging.Logger | None = None,
) -> int:
    """
    Copy a symbol archive, checking for cancellation between chunks.

    Args:
        source: Archive on the build server
        target: Destination file (overwritten)
        cancel: Optional token; when set, the copy stops
        logger: Logger to use instead of the module logger

    Returns:
        Number of bytes copied

    Raises:
        OSError: If either file cannot be opened or the copy fails
        OperationCancelledError: If `cancel` was set during the copy
    """
    log = logger or module_logger
    log.info("Copying %s to %s", source, target)
    start = time.monotonic()
    copied = 0
    with open(source, "rb") as src, open(target, "wb") as dst:
        while True:
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(f"Copy of {source} cancelled")
            chunk = src.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            dst.write(chunk)
            copied += len(chunk)

    log.info("Copy complete: %d bytes in %.2fs", copied, time.monotonic() - start)
    return copied


def extract_archive(archive: Path, destination: Path) -> None:
    """
    Extract a zip archive into `destination`.

    Raises:
        OSError: If the archive cannot be read or is not a zip file
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(destination)
    except zipfile.BadZipFile as e:
        raise OSError(f"Not a valid zip archive: {archive}") from e


def remove_staging(path: Path, logger: logging.Logger | None = None) -> bool:
    """
    Remove a staging directory and everything under it.

    Removal is best effort: entries that cannot be deleted are logged at
    warning level and skipped.

    Returns:
        True if nothing is left at `path`
    """
    log = logger or module_logger
    if not path.exists():
        return True

    def on_error(func, failed: str, exc: BaseException) -> None:
        log.warning("Failed to remove staging entry %s: %s", failed, exc)

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=on_error)
    else:
        shutil.rmtree(
            path, onerror=lambda func, failed, exc_info: on_error(func, failed, exc_info[1])
        )

    if path.exists():
        log.warning("Staging directory %s was not fully removed", path)
        return False
    return True
