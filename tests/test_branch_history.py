"""
Unit tests for build history parsing.

Tests the line parser for server.txt records and BranchBuilder.parse_builds,
which loads the whole history into the registry.
"""

from pathlib import Path

import pytest

from symsync.core.branch import BranchBuilder, Build, parse_history_line
from symsync.core.branch.history import format_history_date
from symsync.core.errors import HandlerError


class TestParseHistoryLine:
    """Test parse_history_line function."""

    def test_sample_record(self) -> None:
        """A store record maps its fields positionally."""
        line = (
            '0000000001,add,file,07/04/2017,14:44:14,'
            '"UDPv6.5U2","4175.2-538","2017/7/4_14:44:14",\r\n'
        )
        build = parse_history_line(line)

        assert build == Build(
            id="0000000001",
            date="2017-07-04 14:44:14",
            branch="UDPv6.5U2",
            version="4175.2-538",
            comment="2017/7/4_14:44:14",
        )

    def test_exactly_eight_fields(self) -> None:
        """Eight fields are enough; the trailing empty field is optional."""
        line = '0000000009,add,file,12/31/2018,08:00:00,"Main","1.0","note"'
        build = parse_history_line(line)

        assert build is not None
        assert build.id == "0000000009"
        assert build.comment == "note"

    def test_too_few_fields(self) -> None:
        """Lines with fewer than eight fields are rejected."""
        assert parse_history_line('0000000001,add,file,07/04/2017,14:44:14,"A","B"') is None
        assert parse_history_line("") is None
        assert parse_history_line("garbage line") is None

    def test_bad_date_kept_verbatim(self) -> None:
        """An unparseable date keeps the raw date and time text."""
        line = '0000000001,add,file,2017-07-04,noon,"A","1.0","c",'
        build = parse_history_line(line)

        assert build is not None
        assert build.date == "2017-07-04 noon"


class TestFormatHistoryDate:
    """Test format_history_date function."""

    def test_reformats(self) -> None:
        assert format_history_date("07/04/2017", "14:44:14") == "2017-07-04 14:44:14"

    def test_single_digit_month(self) -> None:
        assert format_history_date("7/4/2017", "09:05:00") == "2017-07-04 09:05:00"

    def test_invalid(self) -> None:
        assert format_history_date("13/45/2017", "14:44:14") == "13/45/2017 14:44:14"


class TestParseBuilds:
    """Test BranchBuilder.parse_builds."""

    @pytest.fixture
    def history(self, store_dir: Path, sample_history: str) -> Path:
        path = store_dir / "000Admin" / "server.txt"
        path.write_text(sample_history, newline="")
        return path

    def test_counts_well_formed_lines(self, builder: BranchBuilder, history: Path) -> None:
        """Every well-formed line becomes a build; bad lines are skipped."""
        seen: list[Build] = []
        total = builder.parse_builds(seen.append)

        assert total == 3
        assert [b.id for b in seen] == ["0000000001", "0000000002", "0000000003"]

    def test_updates_branch(self, builder: BranchBuilder, history: Path) -> None:
        """The last record becomes the latest build and counts are rebuilt."""
        builder.branch.builds_count = 42
        builder.parse_builds()

        assert builder.branch.builds_count == 3
        assert builder.branch.latest_build == "4175.2-551"
        assert builder.branch.update_date == "2017-07-06 23:59:59"

    def test_populates_registry(self, builder: BranchBuilder, history: Path) -> None:
        """Parsed builds can be looked up by version and by id."""
        builder.parse_builds()

        assert builder.get_build(version="4175.2-540").id == "0000000002"
        assert builder.get_build(build_id="0000000003").version == "4175.2-551"
        assert builder.get_build(version="missing") is None

    def test_replays_registry_in_id_order(
        self, builder: BranchBuilder, history: Path
    ) -> None:
        """A second parse replays the registry by id and leaves the file alone."""
        builder.parse_builds()
        history.write_text("")

        seen: list[Build] = []
        total = builder.parse_builds(seen.append)

        assert total == 3
        assert [b.id for b in seen] == ["0000000001", "0000000002", "0000000003"]
        assert builder.branch.builds_count == 3

    def test_handler_failure_stops_parse(
        self, builder: BranchBuilder, history: Path
    ) -> None:
        """A raising handler stops parsing and reports the partial count."""
        seen: list[str] = []

        def handler(build: Build) -> None:
            seen.append(build.id)
            if build.id == "0000000002":
                raise ValueError("stop here")

        with pytest.raises(HandlerError) as exc_info:
            builder.parse_builds(handler)

        assert exc_info.value.parsed == 2
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert seen == ["0000000001", "0000000002"]
        assert builder.get_build(build_id="0000000003") is None

    def test_missing_history(self, builder: BranchBuilder) -> None:
        """A missing history file is an I/O error."""
        with pytest.raises(FileNotFoundError):
            builder.parse_builds()

    def test_empty_history(self, builder: BranchBuilder, store_dir: Path) -> None:
        """An empty history parses to zero builds without error."""
        (store_dir / "000Admin" / "server.txt").write_text("")

        assert builder.parse_builds() == 0
        assert builder.branch.builds_count == 0
