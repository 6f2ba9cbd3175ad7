"""
Models for branches, builds and symbols.

Provides Pydantic models for the records tracked per branch of the
symbol store: the branch metadata itself (persisted as a snapshot),
committed builds, and the deduplicated symbol files of a build.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
COMMENT_FORMAT = "%Y-%m-%d_%H:%M:%S"


class Arch(str, Enum):
    """CPU architecture a symbol was built for."""

    X86 = "x86"
    X64 = "x64"


class Branch(BaseModel):
    """
    Identity and configuration of one product branch.

    `store_path` and `build_path` are filled in from the configured roots
    by `BranchBuilder` when not given explicitly.

    Example:
        >>> branch = Branch(build_name="UDPv6.5U2", store_name="UDPv6.5U2")
        >>> branch.model_dump_json(indent=2)
    """

    build_name: str = Field(..., description="Branch name on the build server")
    store_name: str = Field(..., description="Branch name in the symbol store")
    store_path: str = Field(default="", description="Root of this branch in the symbol store")
    build_path: str = Field(default="", description="Root of this branch on the build server")
    latest_build: str = Field(default="", description="Version of the latest committed build")
    builds_count: int = Field(default=0, ge=0, description="Number of builds committed")
    update_date: str = Field(default="", description="When the branch last changed")


class Build(BaseModel):
    """
    One committed publication of a branch's symbols.

    Builds are append-only; instances are frozen once created.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Store-assigned build identifier, e.g. 0000000001")
    date: str = Field(..., description="Commit timestamp")
    branch: str = Field(..., description="Owning branch name")
    version: str = Field(..., description="Build server version string")
    comment: str = Field(default="", description="Free-text comment passed to the store")


class Symbol(BaseModel):
    """One deduplicated debug-symbol file belonging to a build."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Symbol file name, e.g. cbt_client.pdb")
    hash: str = Field(..., description="Store key: content and size fingerprint")
    path: str = Field(..., description="Path relative to the staging directory")
    arch: Arch = Field(default=Arch.X86, description="Detected architecture")
    version: str = Field(..., description="Version of the owning build")
