"""CLI application entry point and command routing for ttt.

This module is the **sole error boundary** for the entire application.
It catches :class:`~ttt.exceptions.TttError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via
Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — every intent is delegated to
  :class:`~ttt.core.inquire.Inquire`.
* The store is opened once per command and always closed again.
* This module is the only place that translates between the domain
  world and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, time

from ttt.cli import exit_codes
from ttt.cli.console import err_console, escape
from ttt.core.inquire import Inquire
from ttt.exceptions import TimeSpanSyntaxError, TttError
from ttt.version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser with one sub-command per intent."""
    parser = argparse.ArgumentParser(
        prog="ttt",
        description="Track the time you spend on your projects.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--database",
        metavar="PATH",
        default=None,
        help="SQLite file to use (default: $TTT_DATABASE or the user data dir).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log storage and use-case activity to stderr.",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    start = commands.add_parser("start", help="Start tracking a project.")
    start.add_argument("project", nargs="?", help="Project name (prompted when omitted).")
    start.add_argument("--at", metavar="TIME", help="Start time: HH:MM or ISO date-time.")

    stop = commands.add_parser("stop", help="Stop the running frame.")
    stop.add_argument("--at", metavar="TIME", help="End time: HH:MM or ISO date-time.")

    commands.add_parser("status", help="Show what is being tracked.")

    projects = commands.add_parser("projects", help="List projects.")
    projects.add_argument("--all", action="store_true", help="Include archived projects.")

    project = commands.add_parser("project", help="Create or archive a project.")
    project_actions = project.add_subparsers(dest="action", metavar="ACTION", required=True)
    for action, text in (("create", "Create a project."), ("archive", "Archive a project.")):
        sub = project_actions.add_parser(action, help=text)
        sub.add_argument("name")

    tags = commands.add_parser("tags", help="List tags.")
    tags.add_argument("--all", action="store_true", help="Include archived tags.")
    tags.add_argument("--project", metavar="NAME", help="Only tags attached to this project.")

    tag = commands.add_parser("tag", help="Create, archive, attach, or detach a tag.")
    tag_actions = tag.add_subparsers(dest="action", metavar="ACTION", required=True)
    for action, text in (("create", "Create a tag."), ("archive", "Archive a tag.")):
        sub = tag_actions.add_parser(action, help=text)
        sub.add_argument("name")
    for action, text in (
        ("attach", "Attach a tag to a project."),
        ("detach", "Detach a tag from a project."),
    ):
        sub = tag_actions.add_parser(action, help=text)
        sub.add_argument("project")
        sub.add_argument("tag")

    frames = commands.add_parser("frames", help="List recorded frames.")
    frames.add_argument("--project", metavar="NAME", help="Only frames of this project.")
    frames.add_argument(
        "span",
        nargs="*",
        help="Time span, e.g. 'today', 'last week', '2024-03-01 to 2024-03-15'.",
    )

    commands.add_parser("doctor", help="Run environment diagnostics.")
    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _local_now() -> datetime:
    return datetime.now().astimezone()


def parse_time_of_day(text: str, now: datetime) -> datetime:
    """Parse ``HH:MM`` (today) or an ISO date-time given on the command line."""
    stripped = text.strip()
    try:
        clock = time.fromisoformat(stripped)
    except ValueError:
        pass
    else:
        return datetime.combine(now.date(), clock, tzinfo=clock.tzinfo or now.tzinfo)
    try:
        return datetime.fromisoformat(stripped)
    except ValueError as exc:
        raise TimeSpanSyntaxError(
            f"Cannot understand time '{text}'.",
            hint="Use HH:MM or an ISO date-time such as 2024-03-01T09:30.",
        ) from exc


@contextmanager
def _open_inquire(database: str | None) -> Iterator[Inquire]:
    """Open the store for one command and hand out an Inquire over it."""
    from ttt.infra.database_location import locate_database
    from ttt.infra.sqlite_store import open_store

    location = locate_database(override=database)
    logger.debug("Using database %s (%s)", location.path, location.source)
    with open_store(location.path) as store:
        yield Inquire(store)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_start(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_started

    project_name: str | None = args.project
    if project_name is None:
        from ttt.cli.prompt import prompt_project

        project_name = prompt_project(inquire.list_projects())
    at = parse_time_of_day(args.at, _local_now()) if args.at else None
    frame = inquire.start_frame(project_name, at=at)
    render_started(frame, project_name)
    return exit_codes.SUCCESS


def _handle_stop(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_stopped

    at = parse_time_of_day(args.at, _local_now()) if args.at else None
    frame = inquire.stop_active_frame(at=at)
    names = {project.id: project.name for project in inquire.list_projects(include_archived=True)}
    render_stopped(frame, names.get(frame.project_id, f"#{frame.project_id}"))
    return exit_codes.SUCCESS


def _handle_status(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_status

    render_status(inquire.current_frame(), _local_now())
    return exit_codes.SUCCESS


def _handle_projects(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_projects

    render_projects(inquire.list_projects(include_archived=args.all))
    return exit_codes.SUCCESS


def _handle_project(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.console import console, escape

    if args.action == "create":
        project = inquire.create_project(args.name)
        console.print(f"Created project [bold]{escape(project.name)}[/bold].")
    else:
        project = inquire.archive_project(args.name)
        console.print(f"Archived project [bold]{escape(project.name)}[/bold].")
    return exit_codes.SUCCESS


def _handle_tags(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_tags

    if args.project:
        render_tags(inquire.list_tags_for_project(args.project), title=f"Tags of {args.project}")
    else:
        render_tags(inquire.list_tags(include_archived=args.all))
    return exit_codes.SUCCESS


def _handle_tag(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.console import console, escape

    if args.action == "create":
        tag = inquire.create_tag(args.name)
        console.print(f"Created tag [bold]{escape(tag.name)}[/bold].")
    elif args.action == "archive":
        tag = inquire.archive_tag(args.name)
        console.print(f"Archived tag [bold]{escape(tag.name)}[/bold].")
    elif args.action == "attach":
        tag = inquire.attach_tag(args.project, args.tag)
        console.print(
            f"Tagged [bold]{escape(args.project)}[/bold] "
            f"with [bold]{escape(tag.name)}[/bold].",
        )
    else:
        tag = inquire.detach_tag(args.project, args.tag)
        console.print(
            f"Removed [bold]{escape(tag.name)}[/bold] "
            f"from [bold]{escape(args.project)}[/bold].",
        )
    return exit_codes.SUCCESS


def _handle_frames(inquire: Inquire, args: argparse.Namespace) -> int:
    from ttt.cli.render import render_frames
    from ttt.core.timespan import parse_time_span

    now = _local_now()
    time_range = parse_time_span(args.span, now) if args.span else None
    frames = inquire.list_frames(args.project, time_range)
    names = {project.id: project.name for project in inquire.list_projects(include_archived=True)}
    render_frames(frames, names, now)
    return exit_codes.SUCCESS


_HANDLERS: dict[str, Callable[[Inquire, argparse.Namespace], int]] = {
    "start": _handle_start,
    "stop": _handle_stop,
    "status": _handle_status,
    "projects": _handle_projects,
    "project": _handle_project,
    "tags": _handle_tags,
    "tag": _handle_tag,
    "frames": _handle_frames,
}


def _handle_doctor(args: argparse.Namespace) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from ttt.cli.doctor import run_doctor

    return run_doctor(args.database)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ttt CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.command == "doctor":
        return _handle_doctor(args)

    handler = _HANDLERS[args.command]
    with _open_inquire(args.database) as inquire:
        return handler(inquire, args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except TttError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            err_console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        err_console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
