"""
Configuration data models for symsync.

These models define the structure of .symsync.json and
~/.config/symsync/config.json files, with validation and type safety via
Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BranchConfig(BaseModel):
    """
    One branch tracked by symsync.

    Subpaths, when given, replace the default locations derived from the
    branch names (see `BranchBuilder.set_subpath`).
    """
    build_name: str = Field(
        ...,
        min_length=1,
        description="Branch directory name on the build server"
    )
    store_name: str = Field(
        ...,
        min_length=1,
        description="Branch name in the symbol store"
    )
    build_subpath: str = Field(
        default="",
        description="Path relative to build_source (default: <build_name>/Release)"
    )
    store_subpath: str = Field(
        default="",
        description="Path relative to destination (default: <store_name>)"
    )


class SymSyncConfig(BaseModel):
    """
    Root configuration for symsync.

    Paths are validated by the engine when used, not when loaded.

    Example:
        >>> config = SymSyncConfig(destination=Path("S:/SymbolServer"))
        >>> config.latest_build_file
        'latestbuild.txt'
    """
    model_config = ConfigDict(extra="ignore")

    destination: Optional[Path] = Field(
        default=None,
        description="Root of the local symbol store"
    )
    build_source: Optional[Path] = Field(
        default=None,
        description="Root of the build server share"
    )
    latest_build_file: str = Field(
        default="latestbuild.txt",
        min_length=1,
        description="Name of the latest build pointer file"
    )
    pdb_zip_file: str = Field(
        default="debug.zip",
        min_length=1,
        description="Name of the symbol archive inside each Build<version> directory"
    )
    symstore_exe: str = Field(
        default="symstore.exe",
        min_length=1,
        description="Symbol store command"
    )
    exclude_list: list[str] = Field(
        default_factory=list,
        description="Symbol file names never published (case-insensitive)"
    )
    tool_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds before the symbol store command is killed"
    )
    branches: list[BranchConfig] = Field(
        default_factory=list,
        description="Branches to track"
    )

    @field_validator("exclude_list")
    @classmethod
    def normalize_exclude_list(cls, v: list[str]) -> list[str]:
        """Store excluded names lowercased and without blanks."""
        return [name.strip().lower() for name in v if name.strip()]

    def get_branch(self, store_name: str) -> Optional[BranchConfig]:
        """Find a configured branch by its store name (case-insensitive)."""
        for branch in self.branches:
            if branch.store_name.lower() == store_name.lower():
                return branch
        return None
