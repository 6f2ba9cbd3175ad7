"""
Unit tests for symbol classification.

Tests the exclude list check and the architecture heuristic.
"""

import pytest

from symsync.core.branch import Arch, detect_arch, is_excluded


class TestIsExcluded:
    """Test is_excluded function."""

    def test_exact_match(self) -> None:
        """A listed name is excluded."""
        assert is_excluded("vc140.pdb", ["vc140.pdb"]) is True

    def test_case_insensitive(self) -> None:
        """Case differences on either side do not matter."""
        assert is_excluded("VC140.PDB", ["vc140.pdb"]) is True
        assert is_excluded("vc140.pdb", ["VC140.pdb"]) is True

    def test_not_listed(self) -> None:
        """Names not in the list are kept."""
        assert is_excluded("cbt_client.pdb", ["vc140.pdb"]) is False

    def test_substring_is_not_a_match(self) -> None:
        """Only whole names match."""
        assert is_excluded("vc140.pdb.bak", ["vc140.pdb"]) is False

    def test_empty_list(self) -> None:
        """Nothing is excluded by an empty list."""
        assert is_excluded("anything.pdb", []) is False


class TestDetectArch:
    """Test detect_arch function."""

    @pytest.mark.parametrize(
        "path",
        [
            "\\Release\\X64\\foo.pdb",
            "\\Release\\x64\\foo.pdb",
            "\\Release\\AMD64\\foo.pdb",
            "\\Release\\amd64\\foo.pdb",
            "\\build_x64_release\\foo.pdb",
        ],
    )
    def test_64_bit_paths(self, path: str) -> None:
        """Any x64 or amd64 marker, in any case, means 64-bit."""
        assert detect_arch(path) == Arch.X64

    @pytest.mark.parametrize(
        "path",
        [
            "\\Release\\x86\\foo.pdb",
            "\\Release\\anything\\foo.pdb",
            "foo.pdb",
            "",
        ],
    )
    def test_default_is_32_bit(self, path: str) -> None:
        """Paths without a 64-bit marker are x86."""
        assert detect_arch(path) == Arch.X86
