"""End-to-end tests for command routing (cli/app.py).

Each test drives :func:`main` against a database in ``tmp_path``.
Domain errors propagate out of ``main``; only :func:`cli` turns them
into exit codes, so both layers are exercised here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ttt.cli import exit_codes
from ttt.cli.app import cli, main, parse_time_of_day
from ttt.exceptions import (
    DuplicateNameError,
    FrameAlreadyActiveError,
    InvalidTimeRangeError,
    NoActiveFrameError,
    NoProjectDefinedError,
    TimeSpanSyntaxError,
)


@pytest.fixture
def run(db_path: Path):
    """Invoke ``main`` against the test database."""

    def _run(*argv: str) -> int:
        return main(["--database", str(db_path), *argv])

    return _run


# ---------------------------------------------------------------------------
# Time-of-day parsing
# ---------------------------------------------------------------------------

class TestParseTimeOfDay:
    NOW = datetime(2024, 3, 6, 15, 0, tzinfo=timezone.utc)

    def test_clock_time_is_today(self) -> None:
        assert parse_time_of_day("09:30", self.NOW) == datetime(
            2024, 3, 6, 9, 30, tzinfo=timezone.utc,
        )

    def test_iso_datetime(self) -> None:
        parsed = parse_time_of_day("2024-03-01T08:15+02:00", self.NOW)
        assert parsed == datetime(2024, 3, 1, 6, 15, tzinfo=timezone.utc)

    def test_garbage(self) -> None:
        with pytest.raises(TimeSpanSyntaxError):
            parse_time_of_day("half past nine", self.NOW)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class TestProjectCommands:
    def test_create_and_list(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        assert run("project", "create", "writing") == exit_codes.SUCCESS
        assert run("projects") == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert "Created project" in out
        assert "writing" in out

    def test_duplicate(self, run) -> None:
        run("project", "create", "writing")
        with pytest.raises(DuplicateNameError):
            run("project", "create", "writing")

    def test_archive_hides_from_default_listing(
        self, run, capsys: pytest.CaptureFixture[str],
    ) -> None:
        run("project", "create", "writing")
        run("project", "archive", "writing")
        capsys.readouterr()

        run("projects")
        assert "writing" not in capsys.readouterr().out
        run("projects", "--all")
        assert "writing" in capsys.readouterr().out

    def test_database_created_on_first_use(self, run, db_path: Path) -> None:
        assert not db_path.exists()
        run("projects")
        assert db_path.exists()

    def test_markup_like_names_survive(
        self, run, capsys: pytest.CaptureFixture[str],
    ) -> None:
        run("project", "create", "[wip]")
        capsys.readouterr()
        run("projects")
        assert "[wip]" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------

class TestFrameCommands:
    def test_start_status_stop(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        run("project", "create", "writing")
        assert run("start", "writing") == exit_codes.SUCCESS
        assert run("status") == exit_codes.SUCCESS
        assert run("stop") == exit_codes.SUCCESS
        assert run("status") == exit_codes.SUCCESS

        out = capsys.readouterr().out
        assert "Started" in out
        assert "Tracking" in out
        assert "Stopped" in out
        assert "Not tracking anything" in out

    def test_start_twice(self, run) -> None:
        run("project", "create", "writing")
        run("start", "writing")
        with pytest.raises(FrameAlreadyActiveError):
            run("start", "writing")

    def test_stop_idle(self, run) -> None:
        with pytest.raises(NoActiveFrameError):
            run("stop")

    def test_stop_before_start(self, run) -> None:
        run("project", "create", "writing")
        run("start", "writing", "--at", "2024-03-06T10:00+00:00")
        with pytest.raises(InvalidTimeRangeError):
            run("stop", "--at", "2024-03-06T09:00+00:00")

    def test_start_unknown_project(self, run) -> None:
        with pytest.raises(NoProjectDefinedError):
            run("start", "nope")

    @patch("ttt.cli.prompt.prompt_project", return_value="writing")
    def test_start_prompts_without_name(
        self, mock_prompt: MagicMock, run, capsys: pytest.CaptureFixture[str],
    ) -> None:
        run("project", "create", "writing")
        assert run("start") == exit_codes.SUCCESS
        (projects,), _ = mock_prompt.call_args
        assert [p.name for p in projects] == ["writing"]
        assert "Started" in capsys.readouterr().out

    def test_frames_listing(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        run("project", "create", "writing")
        run("start", "writing", "--at", "2024-03-06T09:00+00:00")
        run("stop", "--at", "2024-03-06T10:30+00:00")
        capsys.readouterr()

        assert run("frames", "--project", "writing") == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert "1:30:00" in out
        assert "Total" in out

    def test_frames_outside_span(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        run("project", "create", "writing")
        run("start", "writing", "--at", "2024-03-06T09:00+00:00")
        run("stop", "--at", "2024-03-06T10:30+00:00")
        capsys.readouterr()

        run("frames", "2000-01-01", "to", "2000-01-02")
        assert "No frames in this span" in capsys.readouterr().out

    def test_frames_bad_span(self, run) -> None:
        with pytest.raises(TimeSpanSyntaxError):
            run("frames", "fortnight")


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TestTagCommands:
    def test_attach_list_detach(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        run("project", "create", "writing")
        run("tag", "create", "urgent")
        run("tag", "attach", "writing", "urgent")
        capsys.readouterr()

        run("tags", "--project", "writing")
        assert "urgent" in capsys.readouterr().out

        run("tag", "detach", "writing", "urgent")
        run("tag", "detach", "writing", "urgent")
        capsys.readouterr()
        run("tags", "--project", "writing")
        assert "urgent" not in capsys.readouterr().out

    def test_archived_tag_listing(self, run, capsys: pytest.CaptureFixture[str]) -> None:
        run("tag", "create", "urgent")
        run("tag", "archive", "urgent")
        capsys.readouterr()

        run("tags")
        assert "urgent" not in capsys.readouterr().out
        run("tags", "--all")
        assert "urgent" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def test_domain_error_exit_code(
        self,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.argv", ["ttt", "--database", str(db_path), "stop"])
        with pytest.raises(SystemExit) as exc_info:
            cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "No frame is currently active" in err
        assert "ttt start" in err

    def test_success_exit_code(
        self, db_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("sys.argv", ["ttt", "--database", str(db_path), "projects"])
        with pytest.raises(SystemExit) as exc_info:
            cli()
        assert exc_info.value.code == exit_codes.SUCCESS

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ttt.cli.app.main", MagicMock(side_effect=KeyboardInterrupt))
        with pytest.raises(SystemExit) as exc_info:
            cli()
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("ttt.cli.app.main", MagicMock(side_effect=RuntimeError("kaput")))
        with pytest.raises(SystemExit) as exc_info:
            cli()
        assert exc_info.value.code == exit_codes.UNEXPECTED_ERROR
        assert "RuntimeError: kaput" in capsys.readouterr().err

    def test_verbose_logs_to_stderr(
        self, run, capsys: pytest.CaptureFixture[str],
    ) -> None:
        run("-v", "projects")
        assert "Using database" in capsys.readouterr().err
