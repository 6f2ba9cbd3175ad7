"""
Pytest configuration and shared fixtures.

Provides a throwaway symbol store and build server layout under tmp_path,
a fake symbol store command, and sample history/index content.
"""

import zipfile
from pathlib import Path

import pytest

from symsync.core.branch import BranchBuilder
from symsync.core.config import SymSyncConfig, clear_cache
from symsync.core.errors import SymStoreError
from symsync.core.store import SymStoreResult

BRANCH_NAME = "UDPv6.5U2"

# ==============================================================================
# Sample Data
# ==============================================================================

SAMPLE_HISTORY = (
    '0000000001,add,file,07/04/2017,14:44:14,"UDPv6.5U2","4175.2-538","2017/7/4_14:44:14",\r\n'
    '0000000002,add,file,07/05/2017,09:01:02,"UDPv6.5U2","4175.2-540","2017/7/5_09:01:02",\r\n'
    "garbage line\r\n"
    '0000000003,add,file,07/06/2017,23:59:59,"UDPv6.5U2","4175.2-551","2017/7/6_23:59:59",\r\n'
)

SAMPLE_INDEX = (
    '"cbt_client.pdb\\8E3868FEE1FA4AC8A42D0FACA65E0BE41",'
    '"S:\\script\\temp\\000Unzip\\x86\\cbt_client.pdb"\r\n'
    '"cbt_client.pdb\\8E3868FEE1FA4AC8A42D0FACA65E0BE41",'
    '"S:\\script\\temp\\000Unzip\\copy\\cbt_client.pdb"\r\n'
    '"arcserve.pdb\\11112222333344445555666677778888A",'
    '"S:\\script\\temp\\000Unzip\\AMD64\\arcserve.pdb"\r\n'
    '"VC140.PDB\\AAAABBBBCCCCDDDDEEEEFFFF000011112",'
    '"S:\\script\\temp\\000Unzip\\x64\\vc140.pdb"\r\n'
    "not an index line\r\n"
    '"no_hash.pdb","S:\\script\\temp\\000Unzip\\no_hash.pdb"\r\n'
    '"agent.pdb\\9999AAAA9999AAAA9999AAAA9999AAAA1",'
    '"S:\\script\\temp\\000Unzip\\Release\\X64\\agent.pdb"\r\n'
)


# ==============================================================================
# Fake symbol store command
# ==============================================================================


class FakeSymStore:
    """
    Stand-in for SymStoreTool that behaves like symstore.exe on disk.

    Assigns sequential build ids, writes lastid.txt and appends to
    server.txt. Records the files it was given to publish.
    """

    def __init__(self, fail: bool = False, write_lastid: bool = True) -> None:
        self.fail = fail
        self.write_lastid = write_lastid
        self.calls: list[dict] = []
        self.published_files: list[str] = []
        self.next_id = 1

    def add(self, *, store_path, product, version, comment, files, cancel=None):
        self.calls.append(
            {
                "store_path": store_path,
                "product": product,
                "version": version,
                "comment": comment,
                "files": files,
            }
        )
        self.published_files = sorted(
            p.relative_to(files).as_posix() for p in files.rglob("*") if p.is_file()
        )
        if self.fail:
            raise SymStoreError("Symbol store command failed with exit code 1", returncode=1)

        build_id = f"{self.next_id:010d}"
        self.next_id += 1
        admin = Path(store_path) / "000Admin"
        if self.write_lastid:
            (admin / "lastid.txt").write_text(build_id + "\r\n")
        with open(admin / "server.txt", "a") as f:
            f.write(
                f'{build_id},add,file,07/04/2017,14:44:14,"{product}","{version}","{comment}",\n'
            )
        return SymStoreResult(command=["symstore.exe", "add"], output="SymStore: done")


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Make every test load configuration from scratch."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def config(tmp_path: Path) -> SymSyncConfig:
    """Configuration rooted in a temporary store and build server."""
    destination = tmp_path / "store"
    build_source = tmp_path / "builds"
    destination.mkdir()
    build_source.mkdir()
    return SymSyncConfig(
        destination=destination,
        build_source=build_source,
        exclude_list=["vc140.pdb"],
    )


@pytest.fixture
def store_dir(config: SymSyncConfig) -> Path:
    """Branch root in the symbol store, with its 000Admin directory."""
    path = config.destination / BRANCH_NAME
    (path / "000Admin").mkdir(parents=True)
    return path


@pytest.fixture
def build_dir(config: SymSyncConfig) -> Path:
    """Branch root on the build server."""
    path = config.build_source / BRANCH_NAME / "Release"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def publish_build(build_dir: Path):
    """
    Put a build on the build server.

    Returns a function taking a version and optional archive members; it
    writes Build<version>/debug.zip and points latestbuild.txt at it.
    """

    def _publish(version: str, files: dict[str, bytes] | None = None) -> Path:
        if files is None:
            files = {
                "x86/cbt_client.pdb": b"x86 symbols",
                "x64/cbt_client.pdb": b"x64 symbols",
            }
        build = build_dir / f"Build{version}"
        build.mkdir(parents=True, exist_ok=True)
        archive = build / "debug.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            for name, content in files.items():
                zf.writestr(name, content)
        (build_dir / "latestbuild.txt").write_text(version + "\r\n")
        return archive

    return _publish


@pytest.fixture
def fake_symstore() -> FakeSymStore:
    """A symbol store command that succeeds."""
    return FakeSymStore()


@pytest.fixture
def builder(config, store_dir, build_dir, fake_symstore) -> BranchBuilder:
    """BranchBuilder for the sample branch with a fake symbol store."""
    return BranchBuilder.new(BRANCH_NAME, BRANCH_NAME, config, tool=fake_symstore)


@pytest.fixture
def sample_history() -> str:
    """server.txt content: three builds and one malformed line."""
    return SAMPLE_HISTORY


@pytest.fixture
def sample_index() -> str:
    """Index content: three unique, kept symbols among noise."""
    return SAMPLE_INDEX


@pytest.fixture
def symstore_factory():
    """The FakeSymStore class, for tests needing a failing or odd store."""
    return FakeSymStore
