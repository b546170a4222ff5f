"""``ttt doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment can host the time-tracking database.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from ttt.cli import exit_codes
from ttt.cli.console import err_console, strip_markup
from ttt.exceptions import StorageUnavailableError
from ttt.infra.database_location import DatabaseLocation, locate_database
from ttt.infra.sqlite_store import open_store, sqlite_library_version
from ttt.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = (major, minor) >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _sqlite_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the SQLite library row.

    Partial and expression indexes need SQLite 3.9 or newer.
    """
    version = sqlite_library_version()
    parts = tuple(int(part) for part in version.split(".")[:2])
    ok = parts >= (3, 9)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.9 required)[/red]"
    return "SQLite", version, status


def _database_check(location: DatabaseLocation) -> tuple[str, str, str]:
    """Return (label, value, status) for the database file row."""
    value = f"{location.path} ({location.source})"
    if not location.exists:
        return "Database", value, "[yellow]WARN (not created yet)[/yellow]"
    try:
        with open_store(location.path) as store:
            schema = store.schema_version()
    except StorageUnavailableError:
        return "Database", value, "[red]FAIL (cannot open)[/red]"
    return "Database", value, f"[green]OK (schema v{schema})[/green]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, "[green]OK[/green]"


def _ttt_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the ttt version row."""
    return "ttt", __version__, "[green]OK[/green]"


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\nttt doctor", file=sys.stderr)
    print("=" * 72, file=sys.stderr)
    print(f"{'Component':<10} {'Value':<48} {'Status':<12}", file=sys.stderr)
    print("-" * 72, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<10} {value:<48} {strip_markup(status):<12}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(database: str | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    checks = [
        _ttt_version_check(),
        _python_version_check(),
        _sqlite_version_check(),
        _database_check(locate_database(override=database)),
        _os_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
    else:
        table = Table(
            title="ttt doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=10)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, value, status)
        err_console.print()
        err_console.print(table)
        err_console.print()

    if has_failure:
        err_console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    err_console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
