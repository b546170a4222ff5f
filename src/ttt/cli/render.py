"""Result rendering for the CLI layer.

This module is responsible for:

* Rendering Rich tables of projects, tags, and frames.
* Falling back to aligned plain text when Rich is missing.
* Short one-line confirmations for start/stop/archive intents.

All display-related logic lives here — no business logic, no storage
access.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from ttt.cli.console import console, escape
from ttt.core.models import Frame, Project, Tag
from ttt.core.validation import format_duration


def _import_rich_table() -> type[Any] | None:
    """Import rich table lazily; ``None`` when Rich is not installed."""
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        return None
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms — no I/O themselves)
# ---------------------------------------------------------------------------

def format_time(value: datetime) -> str:
    """Render a timestamp in local time as ``YYYY-MM-DD HH:MM``."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def format_when(value: datetime | None) -> str:
    return format_time(value) if value is not None else "running"


def _frame_row(frame: Frame, names: Mapping[int, str], now: datetime) -> tuple[str, ...]:
    duration = frame.elapsed(now)
    label = format_duration(duration)
    if frame.is_active:
        label += " (running)"
    return (
        str(frame.id),
        escape(names.get(frame.project_id, f"#{frame.project_id}")),
        format_time(frame.start),
        format_when(frame.end),
        label,
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _render_table(
    title: str,
    columns: Sequence[str],
    rows: Sequence[tuple[str, ...]],
    *,
    empty: str,
) -> None:
    """Print *rows* as a Rich table, or as aligned plain text."""
    if not rows:
        console.print(f"[dim]{empty}[/dim]")
        return

    table_class = _import_rich_table()
    if table_class is not None:
        table = table_class(title=title, header_style="bold cyan", border_style="dim")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        console.print(table)
        return

    widths = [
        max(len(column), *(len(row[index]) for row in rows))
        for index, column in enumerate(columns)
    ]
    console.print("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    console.print("  ".join("-" * width for width in widths))
    for row in rows:
        console.print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))


def render_projects(projects: Sequence[Project]) -> None:
    rows = [
        (
            escape(project.name),
            "archived" if project.archived else "",
            format_time(project.last_access_time),
        )
        for project in projects
    ]
    _render_table("Projects", ("Name", "State", "Last used"), rows, empty="No projects yet.")


def render_tags(tags: Sequence[Tag], *, title: str = "Tags") -> None:
    rows = [
        (
            escape(tag.name),
            "archived" if tag.archived else "",
            format_time(tag.last_access_time),
        )
        for tag in tags
    ]
    _render_table(title, ("Name", "State", "Last used"), rows, empty="No tags.")


def render_frames(
    frames: Iterable[Frame],
    project_names: Mapping[int, str],
    now: datetime,
) -> timedelta:
    """Print a frame table and its total; returns the total duration."""
    rows: list[tuple[str, ...]] = []
    total = timedelta()
    for frame in frames:
        rows.append(_frame_row(frame, project_names, now))
        total += frame.elapsed(now)
    _render_table(
        "Frames",
        ("#", "Project", "Start", "End", "Duration"),
        rows,
        empty="No frames in this span.",
    )
    if rows:
        console.print(f"[bold]Total:[/bold] {format_duration(total)}")
    return total


# ---------------------------------------------------------------------------
# One-line confirmations
# ---------------------------------------------------------------------------

def render_started(frame: Frame, project_name: str) -> None:
    console.print(
        f"[bold green]Started[/bold green] [bold]{escape(project_name)}[/bold] "
        f"at {format_time(frame.start)}",
    )


def render_stopped(frame: Frame, project_name: str) -> None:
    duration = frame.duration or timedelta()
    console.print(
        f"[bold green]Stopped[/bold green] [bold]{escape(project_name)}[/bold] "
        f"after {format_duration(duration)} "
        f"({format_time(frame.start)} → {format_when(frame.end)})",
    )


def render_status(current: tuple[Frame, Project] | None, now: datetime) -> None:
    if current is None:
        console.print("[dim]Not tracking anything.[/dim]")
        return
    frame, project = current
    console.print(
        f"Tracking [bold]{escape(project.name)}[/bold] since {format_time(frame.start)} "
        f"({format_duration(frame.elapsed(now))})",
    )
