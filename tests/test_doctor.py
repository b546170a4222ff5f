"""Tests for the ``ttt doctor`` command (cli/doctor.py).

Databases live in ``tmp_path``; the SQLite library version is mocked
where a failing row is needed.

Coverage:
* Individual check functions return correct tuples.
* A missing database is a WARN; an unreadable one is a FAIL.
* Doctor renders plain text when Rich is missing.
* CLI routing dispatches to ``run_doctor``.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ttt.cli import exit_codes
from ttt.infra.database_location import locate_database
from ttt.infra.sqlite_store import open_store


# ---------------------------------------------------------------------------
# Individual check functions
# ---------------------------------------------------------------------------

class TestPythonVersionCheck:
    def test_returns_tuple(self) -> None:
        from ttt.cli.doctor import _python_version_check

        label, value, status = _python_version_check()
        assert label == "Python"
        assert isinstance(value, str)
        assert "OK" in status


class TestSqliteVersionCheck:
    def test_current_library(self) -> None:
        from ttt.cli.doctor import _sqlite_version_check

        label, _value, status = _sqlite_version_check()
        assert label == "SQLite"
        assert "OK" in status

    @patch("ttt.cli.doctor.sqlite_library_version", return_value="3.8.11")
    def test_too_old(self, _mock_version: MagicMock) -> None:
        from ttt.cli.doctor import _sqlite_version_check

        _label, value, status = _sqlite_version_check()
        assert value == "3.8.11"
        assert "FAIL" in status


class TestDatabaseCheck:
    def test_missing_is_warning(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import _database_check

        label, value, status = _database_check(locate_database({}, override=tmp_path / "t.db"))
        assert label == "Database"
        assert "(option)" in value
        assert "WARN" in status

    def test_existing(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import _database_check

        target = tmp_path / "t.db"
        with open_store(target):
            pass
        _label, _value, status = _database_check(locate_database({}, override=target))
        assert "OK" in status
        assert "schema v1" in status

    def test_unreadable_is_failure(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import _database_check

        target = tmp_path / "t.db"
        target.write_bytes(b"garbage" * 1000)
        _label, _value, status = _database_check(locate_database({}, override=target))
        assert "FAIL" in status


class TestOsCheck:
    @patch("ttt.cli.doctor.platform.machine", return_value="arm64")
    @patch("ttt.cli.doctor.platform.release", return_value="23.4.0")
    @patch("ttt.cli.doctor.platform.system", return_value="Darwin")
    def test_darwin_is_displayed_as_macos(
        self,
        _mock_system: MagicMock,
        _mock_release: MagicMock,
        _mock_machine: MagicMock,
    ) -> None:
        from ttt.cli.doctor import _os_check

        label, value, status = _os_check()
        assert label == "OS"
        assert "macOS" in value
        assert "Darwin" not in value
        assert "OK" in status


class TestTttVersionCheck:
    def test_returns_current_version(self) -> None:
        from ttt.cli.doctor import _ttt_version_check
        from ttt.version import __version__

        label, value, status = _ttt_version_check()
        assert label == "ttt"
        assert value == __version__
        assert "OK" in status


# ---------------------------------------------------------------------------
# run_doctor integration
# ---------------------------------------------------------------------------

class TestRunDoctor:
    def test_fresh_install_succeeds(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import run_doctor

        assert run_doctor(str(tmp_path / "t.db")) == exit_codes.SUCCESS

    def test_does_not_create_database(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import run_doctor

        run_doctor(str(tmp_path / "t.db"))
        assert not (tmp_path / "t.db").exists()

    def test_broken_database_fails(self, tmp_path: Path) -> None:
        from ttt.cli.doctor import run_doctor

        target = tmp_path / "t.db"
        target.write_bytes(b"garbage" * 1000)
        assert run_doctor(str(target)) == exit_codes.GENERAL_ERROR

    @patch.dict("sys.modules", {"rich": None, "rich.console": None, "rich.table": None})
    def test_plain_output(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        from ttt.cli.doctor import run_doctor

        _ = run_doctor(str(tmp_path / "t.db"))
        captured = capsys.readouterr()
        assert "ttt doctor" in captured.err
        assert "Database" in captured.err
        assert "[green]" not in captured.err
        assert captured.out == ""


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestDoctorRouting:
    @patch("ttt.cli.doctor.run_doctor", return_value=exit_codes.SUCCESS)
    def test_doctor_dispatches(self, mock_run: MagicMock) -> None:
        from ttt.cli.app import main

        code = main(["--database", "/tmp/x.db", "doctor"])
        assert code == exit_codes.SUCCESS
        mock_run.assert_called_once_with("/tmp/x.db")

    @patch("ttt.cli.doctor.run_doctor", return_value=exit_codes.GENERAL_ERROR)
    def test_doctor_failure_propagates(self, _mock_run: MagicMock) -> None:
        from ttt.cli.app import main

        assert main(["doctor"]) == exit_codes.GENERAL_ERROR
