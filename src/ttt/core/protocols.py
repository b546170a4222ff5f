"""Protocols (interfaces) consumed by the core layer.

These define the contract the persistence adapter must satisfy.  Core
code depends ONLY on this protocol — never on the SQLite
implementation — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol

from ttt.core.models import Frame, Project, Tag, TimeRange


class Store(Protocol):
    """Contract for the persisted store of projects, tags, and frames.

    Every operation is atomic with respect to the store.  Failures are
    reported as :class:`~ttt.exceptions.StorageError` subclasses; it is
    the caller's job to translate them into domain errors.
    """

    def transaction(self) -> AbstractContextManager[None]:
        """Group several operations into one atomic unit.

        Must be re-entrant: nesting joins the outer transaction, and an
        exception escaping the outermost level rolls everything back.
        """
        ...  # pragma: no cover

    # -- projects ---------------------------------------------------------

    def create_project(self, name: str, at: datetime | None = None) -> Project:
        """Insert a project.

        Raises
        ------
        DuplicateRowError
            When the name is used by any project, archived or not.
        """
        ...  # pragma: no cover

    def find_project(
        self,
        *,
        name: str | None = None,
        project_id: int | None = None,
    ) -> Project:
        """Look a project up by name or id (archived ones included).

        Raises
        ------
        RowNotFoundError
            When no such project exists.
        """
        ...  # pragma: no cover

    def list_projects(self, include_archived: bool = False) -> list[Project]:
        """Projects ordered by last access time, most recent first."""
        ...  # pragma: no cover

    def archive_project(self, project_id: int, at: datetime | None = None) -> Project:
        """Mark a project archived; idempotent.

        Raises
        ------
        RowNotFoundError
            When the id is unknown.
        """
        ...  # pragma: no cover

    def touch_project(self, project_id: int, at: datetime | None = None) -> None:
        ...  # pragma: no cover

    # -- tags -------------------------------------------------------------

    def create_tag(self, name: str, at: datetime | None = None) -> Tag:
        ...  # pragma: no cover

    def find_tag(self, *, name: str | None = None, tag_id: int | None = None) -> Tag:
        ...  # pragma: no cover

    def list_tags(self, include_archived: bool = False) -> list[Tag]:
        ...  # pragma: no cover

    def archive_tag(self, tag_id: int, at: datetime | None = None) -> Tag:
        ...  # pragma: no cover

    def touch_tag(self, tag_id: int, at: datetime | None = None) -> None:
        ...  # pragma: no cover

    def attach_tag(self, project_id: int, tag_id: int) -> None:
        """Link a tag to a project.

        Raises
        ------
        RowNotFoundError
            When either side is missing.
        LinkExistsError
            When the pair is already linked.
        """
        ...  # pragma: no cover

    def detach_tag(self, project_id: int, tag_id: int) -> None:
        """Remove a link; a no-op when the pair is not linked."""
        ...  # pragma: no cover

    def list_tags_for_project(
        self,
        project_id: int,
        include_archived: bool = False,
    ) -> list[Tag]:
        ...  # pragma: no cover

    # -- frames -----------------------------------------------------------

    def start_frame(
        self,
        project_id: int,
        start_time: datetime,
        at: datetime | None = None,
    ) -> Frame:
        """Open a frame as a single check-and-insert.

        The project's last access time is set to *at* (default: now).

        Raises
        ------
        RowNotFoundError
            When the project is missing.
        ActiveFrameExistsError
            When another frame is still unterminated.
        """
        ...  # pragma: no cover

    def stop_frame(self, end_time: datetime, at: datetime | None = None) -> Frame:
        """Close the active frame and set its project's last access to *at*.

        Raises
        ------
        NoOpenFrameError
            When no frame is active.
        InvalidRangeError
            When *end_time* precedes the frame's start.
        """
        ...  # pragma: no cover

    def active_frame(self) -> Frame | None:
        ...  # pragma: no cover

    def get_frame(self, frame_id: int) -> Frame:
        ...  # pragma: no cover

    def list_frames(
        self,
        project_id: int | None = None,
        time_range: TimeRange | None = None,
    ) -> Iterable[Frame]:
        """Lazy, restartable sequence of frames ordered by start."""
        ...  # pragma: no cover
