"""
Branch registry and symbol synchronization.

`BranchBuilder` owns the in-memory builds and symbols of one branch and
the workflow that publishes a new build from the build server into the
symbol store:

    build server                          local symbol store
    <build_path>/latestbuild.txt   --->   <store_path>/000Admin/latestbuild.txt
    <build_path>/Build<v>/debug.zip --->  <store_path>/000Unzip/ (staging)
                                          symstore.exe add ... -> 000Admin/lastid.txt
                                                                  000Admin/server.txt
                                                                  000Admin/<build id>

History and per-build symbol lists are read back from the files the store
command maintains in ``000Admin``. Branch metadata is snapshotted to
``000Admin/branch.json``.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from symsync.core.branch.classifier import detect_arch, is_excluded
from symsync.core.branch.history import parse_history_line
from symsync.core.branch.index import STAGING_MARKER, SeenHashes, parse_index_line
from symsync.core.branch.models import COMMENT_FORMAT, DATE_FORMAT, Branch, Build, Symbol
from symsync.core.config.models import SymSyncConfig
from symsync.core.errors import (
    BranchNotInitializedError,
    BuildNotExistError,
    CorruptSnapshotError,
    HandlerError,
    InvalidBuildServerPathError,
    InvalidStorePathError,
    SymStoreError,
)
from symsync.core.store.archive import copy_archive, extract_archive, remove_staging
from symsync.core.store.pointers import read_pointer, write_pointer
from symsync.core.store.symstore import SymStoreTool
from symsync.utils.locking import ReadWriteLock

ADMIN_DIR = "000Admin"
STAGING_DIR = STAGING_MARKER
LASTID_FILE = "lastid.txt"
HISTORY_FILE = "server.txt"
SNAPSHOT_FILE = "branch.json"

BuildHandler = Callable[[Build], object]
SymbolHandler = Callable[[Symbol], object]
Extractor = Callable[[Path, Path], None]


class BranchBuilder:
    """
    Registry of builds and symbols for one branch, plus its sync workflow.

    All access to the builds and symbols maps goes through a reader/writer
    lock. The lock is held only around map access, never across file
    copies or the symbol store command. One `add_build` call per branch
    at a time is expected; concurrent calls on the same branch share the
    staging directory and must be serialized by the caller.

    Example:
        >>> builder = BranchBuilder.new("UDPv6.5U2", "UDPv6.5U2", config)
        >>> try:
        ...     builder.load()
        ... except FileNotFoundError:
        ...     pass
        >>> builder.parse_builds()
        >>> build = builder.add_build()
        >>> builder.persist()
    """

    def __init__(
        self,
        branch: Branch,
        config: SymSyncConfig | None = None,
        *,
        tool: SymStoreTool | None = None,
        extractor: Extractor = extract_archive,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            branch: Branch record; empty store/build paths are derived from
                the configured destination and build source
            config: Static configuration (defaults to SymSyncConfig())
            tool: Symbol store runner (defaults to one built from config)
            extractor: Callable extracting an archive into a directory
            logger: Logger to use instead of the module logger
        """
        self.config = config or SymSyncConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.tool = tool or SymStoreTool(
            self.config.symstore_exe,
            timeout=self.config.tool_timeout,
            logger=self.logger,
        )
        self.extractor = extractor
        self.branch = branch.model_copy()

        self._builds: dict[str, Build] = {}
        self._symbols: dict[str, Symbol] = {}
        self._lock = ReadWriteLock()

        if not self.branch.store_path and self.config.destination is not None:
            self.branch.store_path = str(self.config.destination / self.branch.store_name)
        if not self.branch.build_path and self.config.build_source is not None:
            self.branch.build_path = str(
                self.config.build_source / self.branch.build_name / "Release"
            )

    @classmethod
    def new(
        cls,
        build_name: str,
        store_name: str,
        config: SymSyncConfig | None = None,
        **kwargs: object,
    ) -> BranchBuilder:
        """Create a builder for a branch that has no snapshot yet."""
        branch = Branch(
            build_name=build_name,
            store_name=store_name,
            update_date=datetime.now().strftime(DATE_FORMAT),
        )
        return cls(branch, config, **kwargs)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        """Branch name in the symbol store."""
        return self.branch.store_name

    @property
    def store_path(self) -> Path:
        """Root of the branch in the symbol store."""
        if not self.branch.store_path:
            raise BranchNotInitializedError(
                f"Symbol store path is not configured for branch {self.name}"
            )
        return Path(self.branch.store_path)

    @property
    def build_path(self) -> Path:
        """Root of the branch on the build server."""
        if not self.branch.build_path:
            raise BranchNotInitializedError(
                f"Build server path is not configured for branch {self.name}"
            )
        return Path(self.branch.build_path)

    @property
    def admin_dir(self) -> Path:
        return self.store_path / ADMIN_DIR

    @property
    def staging_dir(self) -> Path:
        return self.store_path / STAGING_DIR

    @property
    def remote_pointer_path(self) -> Path:
        return self.build_path / self.config.latest_build_file

    @property
    def local_pointer_path(self) -> Path:
        return self.admin_dir / self.config.latest_build_file

    def can_browse(self) -> bool:
        """Check that the branch is a valid store root (has 000Admin)."""
        if not self.branch.store_path:
            return False
        if self.admin_dir.is_dir():
            return True
        self.logger.debug("Cannot access symbol path %s", self.admin_dir)
        return False

    def can_update(self) -> bool:
        """Check that the build server publishes a latest build pointer."""
        if not self.branch.build_path:
            return False
        if self.remote_pointer_path.is_file():
            return True
        self.logger.debug("Cannot access build path %s", self.remote_pointer_path)
        return False

    def validate(self) -> None:
        """
        Check both ends of the branch.

        Raises:
            InvalidStorePathError: If the store path is not a store root
            InvalidBuildServerPathError: If the build server pointer is missing
        """
        if not self.can_browse():
            raise InvalidStorePathError(self.branch.store_path, self.name)
        if not self.can_update():
            raise InvalidBuildServerPathError(self.branch.build_path, self.name)

    def set_subpath(self, build_server: str = "", local_store: str = "") -> None:
        """
        Re-root the branch under the configured store and build server roots.

        Args:
            build_server: Path relative to build_source
                (default: <build_name>/Release)
            local_store: Path relative to destination (default: <store_name>)

        Raises:
            BranchNotInitializedError: If destination or build_source is unset
            OSError: If 000Admin cannot be created under the store path
            InvalidBuildServerPathError: If the build server path does not exist
        """
        if self.config.destination is None or self.config.build_source is None:
            raise BranchNotInitializedError(
                "destination and build_source must be configured to set subpaths"
            )

        store = self.config.destination / (local_store or self.branch.store_name)
        if build_server:
            build = self.config.build_source / build_server
        else:
            build = self.config.build_source / self.branch.build_name / "Release"

        try:
            (store / ADMIN_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error("Failed to init symbol store path %s: %s", store, e)
            raise
        self.branch.store_path = str(store)
        self.branch.build_path = str(build)

        if not build.exists():
            self.logger.error("Invalid build server path %s for %s", build, self.name)
            raise InvalidBuildServerPathError(str(build), self.name)

    def get_symbol_path(self, symbol_hash: str, name: str) -> Path:
        """Full path of a stored symbol file."""
        return self.store_path / name / symbol_hash / name

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """
        Save the branch record to 000Admin/branch.json atomically.

        Only branch metadata is saved; builds come back from the history log.
        """
        path = self.admin_dir / SNAPSHOT_FILE
        with self._lock.read():
            content = self.branch.model_dump_json(indent=2)
        self.logger.debug("Saving branch %s", content)

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=path.parent, prefix=".branch_", suffix=".json.tmp"
            )
        except OSError as e:
            self.logger.error("Failed to persist branch %s: %s", self.name, e)
            raise

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.write("\n")
            os.replace(temp_path, path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def load(self) -> None:
        """
        Restore the branch record from 000Admin/branch.json.

        A missing snapshot is normal on first run; the FileNotFoundError is
        raised without logging so the caller can decide how much it matters.

        Raises:
            FileNotFoundError: If no snapshot exists
            CorruptSnapshotError: If the snapshot cannot be decoded
        """
        path = self.admin_dir / SNAPSHOT_FILE
        try:
            branch = Branch.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, UnicodeDecodeError) as e:
            self.logger.error("Failed to load branch %s from %s: %s", self.name, path, e)
            raise CorruptSnapshotError(str(path), self.name) from e
        with self._lock.write():
            self.branch = branch

    def delete(self) -> None:
        """Remove the branch snapshot. History and stored symbols are kept."""
        self.logger.info("Deleting branch %s", self.name)
        (self.admin_dir / SNAPSHOT_FILE).unlink()

    # ------------------------------------------------------------------
    # Pointer files
    # ------------------------------------------------------------------

    def get_latest_id(self) -> str:
        """
        Last build id assigned by the symbol store.

        Returns:
            The id, or "" when lastid.txt cannot be read ("" means unknown)
        """
        path = self.admin_dir / LASTID_FILE
        try:
            return read_pointer(path)
        except OSError as e:
            self.logger.error("Failed to read latest build id %s: %s", path, e)
            return ""

    def _read_latest_build(self, local: bool) -> str:
        return read_pointer(self.local_pointer_path if local else self.remote_pointer_path)

    def _update_latest_build(self, version: str) -> None:
        try:
            write_pointer(self.local_pointer_path, version)
        except OSError as e:
            self.logger.error(
                "Failed to write local latest build %s: %s", self.local_pointer_path, e
            )
            raise

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get_build(self, version: str = "", build_id: str = "") -> Build | None:
        """Look up a build by version, falling back to its id."""
        with self._lock.read():
            if version:
                for build in self._builds.values():
                    if build.version == version:
                        return build
            if build_id:
                return self._builds.get(build_id)
        return None

    def builds(self) -> list[Build]:
        """Builds in the registry, ordered by id."""
        with self._lock.read():
            return sorted(self._builds.values(), key=lambda b: b.id)

    def get_symbol(self, symbol_hash: str) -> Symbol | None:
        """Look up a symbol retained by `parse_symbols(..., retain=True)`."""
        with self._lock.read():
            return self._symbols.get(symbol_hash)

    def _add_build(self, build: Build) -> None:
        with self._lock.write():
            self._builds[build.id] = build
            self.branch.builds_count += 1
            self.branch.update_date = build.date
            self.branch.latest_build = build.version

    # ------------------------------------------------------------------
    # Sync workflow
    # ------------------------------------------------------------------

    def add_build(
        self,
        version: str = "",
        *,
        cancel: threading.Event | None = None,
    ) -> Build | None:
        """
        Publish the symbols of a build to the store, at most once.

        With no `version`, the build server's latest build pointer decides
        which build to publish; if it matches the local pointer the branch
        is already current. A version already in the registry is skipped.

        Args:
            version: Build version to publish ("" for the latest)
            cancel: Optional token checked during the copy and the store run

        Returns:
            The committed Build, or None if there was nothing to do

        Raises:
            InvalidBuildServerPathError: If the remote pointer is unreadable
            SymStoreError: If the symbol store command fails
            OperationCancelledError: If `cancel` was set
            OSError: If staging, copying, extracting or the pointer update fails
        """
        try:
            local = self._read_latest_build(local=True)
        except OSError:
            local = ""

        latest = version
        if not latest:
            try:
                latest = self._read_latest_build(local=False)
            except OSError as e:
                self.logger.error(
                    "Failed to read latest build on build server for %s: %s", self.name, e
                )
                raise InvalidBuildServerPathError(str(self.remote_pointer_path), self.name) from e
            if latest == local:
                self.logger.debug("Branch %s already at latest build %s", self.name, latest)
                return None
            if not latest:
                raise InvalidBuildServerPathError(str(self.remote_pointer_path), self.name)

        if self.get_build(version=latest) is not None:
            self.logger.warning("Symbols for build %s already exist in %s", latest, self.name)
            return None

        self.logger.info("Adding symbols for build %s to %s (local: %s)", latest, self.name, local)

        staging = self.staging_dir
        try:
            try:
                staging.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.logger.error("Failed to create staging path %s: %s", staging, e)
                raise
            archive = self._fetch_symbols(latest, staging, cancel)
            try:
                self.extractor(archive, staging)
            except OSError as e:
                self.logger.error("Failed to extract %s: %s", archive, e)
                raise
            build = self._add_to_store(latest, staging, cancel)
            self._update_latest_build(latest)
        finally:
            remove_staging(staging, self.logger)

        self._add_build(build)
        self.logger.info("Build %s committed to %s as %s", latest, self.name, build.id)
        return build

    def _fetch_symbols(
        self, version: str, staging: Path, cancel: threading.Event | None
    ) -> Path:
        source = self.build_path / f"Build{version}" / self.config.pdb_zip_file
        target = staging / self.config.pdb_zip_file
        try:
            copy_archive(source, target, cancel=cancel, logger=self.logger)
        except OSError as e:
            self.logger.error("Failed to copy symbols %s: %s", source, e)
            raise
        return target

    def _add_to_store(
        self, version: str, staging: Path, cancel: threading.Event | None
    ) -> Build:
        start = datetime.now()
        comment = start.strftime(COMMENT_FORMAT)
        try:
            result = self.tool.add(
                store_path=self.store_path,
                product=self.name,
                version=version,
                comment=comment,
                files=staging,
                cancel=cancel,
            )
        except SymStoreError as e:
            self.logger.error("Failed to add build %s to symbol store: %s", version, e)
            raise
        self.logger.debug(
            "Symbol store ran %s in %.2fs", " ".join(result.command), result.duration
        )

        build_id = self.get_latest_id()
        if not build_id:
            self.logger.warning("Symbol store assigned no readable id to build %s", version)
        return Build(
            id=build_id,
            date=start.strftime(DATE_FORMAT),
            branch=self.name,
            version=version,
            comment=comment,
        )

    # ------------------------------------------------------------------
    # History and symbol index
    # ------------------------------------------------------------------

    def parse_builds(self, handler: BuildHandler | None = None) -> int:
        """
        Load build history from 000Admin/server.txt into the registry.

        Each parsed build is committed to the registry, becomes the latest
        build, and is passed to `handler`. When the registry already holds
        builds, the file is not read again and the registry is replayed to
        `handler` in id order instead.

        Args:
            handler: Called with each Build; raising stops the parse

        Returns:
            Number of builds parsed (or replayed)

        Raises:
            OSError: If the history file cannot be opened
            HandlerError: If `handler` raised; ``parsed`` counts builds
                handed to `handler`, the failing one included
        """
        cached = self.builds()
        if cached:
            for done, build in enumerate(cached, start=1):
                self._call_handler(handler, build, done)
            return len(cached)

        path = self.admin_dir / HISTORY_FILE
        try:
            f = open(path, encoding="utf-8", errors="replace")
        except OSError as e:
            self.logger.error("Failed to open build history %s: %s", path, e)
            raise

        with f:
            with self._lock.write():
                self.branch.builds_count = 0

            total = 0
            for line in f:
                build = parse_history_line(line, self.logger)
                if build is None:
                    self.logger.warning("Invalid line in %s: %r", path.name, line.rstrip("\r\n"))
                    continue
                total += 1
                self._add_build(build)
                self._call_handler(handler, build, total)

        return total

    def parse_symbols(
        self,
        build_id: str,
        handler: SymbolHandler | None = None,
        *,
        retain: bool = False,
    ) -> int:
        """
        Read the unique, non-excluded symbols of one build.

        Hashes are deduplicated within this call only; the first occurrence
        wins. Excluded names (config.exclude_list) are dropped.

        Args:
            build_id: Store id of a build already in the registry
            handler: Called with each Symbol; raising stops the parse
            retain: Also keep each Symbol in the registry's symbol map

        Returns:
            Number of unique symbols processed

        Raises:
            BuildNotExistError: If the registry has no build `build_id`
            OSError: If the index file cannot be opened
            HandlerError: If `handler` raised; ``parsed`` counts symbols
                processed before the failing one
        """
        build = self.get_build(build_id=build_id)
        if build is None:
            self.logger.error("Build %s does not exist for %s", build_id, self.name)
            raise BuildNotExistError(build_id, self.name)

        path = self.admin_dir / build_id
        try:
            f = open(path, encoding="utf-8", errors="replace")
        except OSError as e:
            self.logger.error("Failed to open symbol index %s: %s", path, e)
            raise

        seen = SeenHashes()
        total = 0
        with f:
            for line in f:
                entry = parse_index_line(line)
                if entry is None:
                    self.logger.warning("Invalid line in %s: %r", build_id, line.rstrip("\r\n"))
                    continue
                if is_excluded(entry.name, self.config.exclude_list):
                    continue
                if entry.hash in seen:
                    continue

                symbol = Symbol(
                    name=entry.name,
                    hash=entry.hash,
                    path=entry.path,
                    arch=detect_arch(entry.path),
                    version=build.version,
                )
                self._call_handler(handler, symbol, total)
                seen.add(symbol.hash)
                total += 1
                if retain:
                    with self._lock.write():
                        self._symbols[symbol.hash] = symbol

        return total

    def _call_handler(
        self,
        handler: Callable[[Build], object] | Callable[[Symbol], object] | None,
        record: Build | Symbol,
        parsed: int,
    ) -> None:
        if handler is None:
            return
        try:
            handler(record)  # type: ignore[arg-type]
        except Exception as e:
            self.logger.error("Handler failed for %r in %s: %s", record, self.name, e)
            raise HandlerError(f"Handler failed for {record!r}: {e}", parsed=parsed) from e
