"""Interactive project selection for the CLI layer.

Used when ``ttt start`` is called without a project name: the live
projects are offered most-recently-used first and the chosen name is
returned.  No business logic lives here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ttt.core.models import Project
from ttt.exceptions import DependencyMissingError, NoProjectDefinedError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise DependencyMissingError(
            "questionary is not installed. Install with: pip install questionary",
            hint="Or pass the project name: ttt start PROJECT",
        ) from exc
    return questionary


def prompt_project(projects: Sequence[Project]) -> str:
    """Ask the user to pick one of *projects* and return its name.

    Raises
    ------
    NoProjectDefinedError
        If there is nothing to choose from, or the prompt is cancelled.
    KeyboardInterrupt
        If the user presses Ctrl+C during selection.
    """
    if not projects:
        raise NoProjectDefinedError(
            "There are no projects to track yet.",
            hint="Create one with: ttt project create NAME",
        )

    questionary = _import_questionary()
    selected: str | None = questionary.select(
        "Project to track:",
        choices=[project.name for project in projects],
        use_arrow_keys=True,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise NoProjectDefinedError(
            "No project selected.",
            hint="Use arrow keys to pick a project, then press Enter.",
        )
    return selected
