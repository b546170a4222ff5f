"""Inquire — the use-case orchestrator between user intent and storage.

One method per user intent, each a short protocol of
*validate → mutate → report*.  The store is injected at construction
time (dependency inversion), keeping the core free of any SQLite
imports.

Guarantees
----------
* Only :class:`~ttt.exceptions.TttError` subclasses escape; storage
  errors never reach the caller.
* No entity state is cached between calls.  "The active frame" is
  re-derived from the store every time it is needed.
* Every intent runs inside one store transaction, so the checks it
  performs and the mutations it issues are atomic.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime

from ttt.core.models import Frame, Project, Tag, TimeRange
from ttt.core.protocols import Store
from ttt.core.validation import normalize_timestamp, utc_now, validate_name, validate_range
from ttt.exceptions import (
    ActiveFrameExistsError,
    DuplicateNameError,
    DuplicateRowError,
    FrameAlreadyActiveError,
    InvalidRangeError,
    InvalidTimeRangeError,
    LinkExistsError,
    NoActiveFrameError,
    NoOpenFrameError,
    NoProjectDefinedError,
    NotFoundError,
    ProjectHasActiveFrameError,
    RowNotFoundError,
    StorageError,
    StorageUnavailableError,
    TttError,
)

logger = logging.getLogger(__name__)


@contextmanager
def _storage_boundary() -> Iterator[None]:
    """Translate storage errors that escaped the call-site handlers.

    Call sites map the errors they expect with the right context; this
    is the fallback that keeps raw storage failures from leaking.
    """
    try:
        yield
    except TttError:
        raise
    except DuplicateRowError as exc:
        raise DuplicateNameError(str(exc)) from exc
    except NoOpenFrameError as exc:
        raise NoActiveFrameError(str(exc)) from exc
    except InvalidRangeError as exc:
        raise InvalidTimeRangeError(str(exc)) from exc
    except RowNotFoundError as exc:
        raise NotFoundError(str(exc)) from exc
    except StorageError as exc:
        logger.warning("Storage failure: %s", exc)
        raise StorageUnavailableError(
            f"The time-tracking database is unavailable: {exc}",
            hint="Nothing was retried. Run 'ttt doctor' to inspect the database.",
        ) from exc


class FrameSequence:
    """Restartable view over a store frame query with error translation."""

    def __init__(self, frames: Iterable[Frame]) -> None:
        self._frames = frames

    def __iter__(self) -> Iterator[Frame]:
        with _storage_boundary():
            yield from self._frames


class Inquire:
    """Use-case service for projects, tags, and frames.

    Parameters
    ----------
    store:
        Any object satisfying the :class:`Store` protocol.
    clock:
        Returns "now"; defaults to :func:`utc_now`.  Injected so tests
        can control time.
    """

    def __init__(self, store: Store, clock: Callable[[], datetime] = utc_now) -> None:
        self._store: Store = store
        self._clock: Callable[[], datetime] = clock

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def start_frame(self, project_name: str, at: datetime | None = None) -> Frame:
        """Start timing *project_name*.

        Raises
        ------
        NoProjectDefinedError
            If the project does not exist or is archived.
        FrameAlreadyActiveError
            If another frame is running; carries that frame and its
            project name.
        """
        name = validate_name(project_name, "project name")
        start = self._when(at)
        logger.debug("start_frame project=%r at=%s", name, start.isoformat())
        with _storage_boundary(), self._store.transaction():
            project = self._resolve_project(name)
            try:
                return self._store.start_frame(project.id, start, at=self._clock())
            except ActiveFrameExistsError as exc:
                raise self._already_active(exc.frame_id) from exc

    def stop_active_frame(self, at: datetime | None = None) -> Frame:
        """Stop the running frame and return it with its end set.

        Raises
        ------
        NoActiveFrameError
            If nothing is running.
        InvalidTimeRangeError
            If *at* lies before the frame's start; the frame is left
            untouched.
        """
        end = self._when(at)
        logger.debug("stop_active_frame at=%s", end.isoformat())
        with _storage_boundary(), self._store.transaction():
            active = self._store.active_frame()
            if active is None:
                raise NoActiveFrameError(
                    "No frame is currently active.",
                    hint="Start one with: ttt start PROJECT",
                )
            validate_range(active.start, end)
            try:
                return self._store.stop_frame(end, at=self._clock())
            except NoOpenFrameError as exc:
                raise NoActiveFrameError("No frame is currently active.") from exc
            except InvalidRangeError as exc:
                raise InvalidTimeRangeError(str(exc)) from exc

    def current_frame(self) -> tuple[Frame, Project] | None:
        """The running frame and its project, or ``None``."""
        with _storage_boundary():
            active = self._store.active_frame()
            if active is None:
                return None
            return active, self._store.find_project(project_id=active.project_id)

    def list_frames(
        self,
        project_name: str | None = None,
        time_range: TimeRange | None = None,
    ) -> FrameSequence:
        """Frames ordered by start, optionally filtered.

        Archived projects are accepted here since frame history stays
        queryable after archiving.
        """
        with _storage_boundary(), self._store.transaction():
            project_id: int | None = None
            if project_name is not None:
                name = validate_name(project_name, "project name")
                project_id = self._resolve_project(name, allow_archived=True).id
            return FrameSequence(self._store.list_frames(project_id, time_range))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, name: str) -> Project:
        """Create a project.

        Raises
        ------
        DuplicateNameError
            If any project, archived or not, already uses *name*.
        """
        name = validate_name(name, "project name")
        logger.debug("create_project %r", name)
        with _storage_boundary(), self._store.transaction():
            try:
                return self._store.create_project(name, at=self._clock())
            except DuplicateRowError as exc:
                raise DuplicateNameError(
                    f"Project '{name}' already exists.",
                    hint=self._duplicate_project_hint(name),
                ) from exc

    def archive_project(self, name: str) -> Project:
        """Archive a project; already archived projects are returned as is.

        Raises
        ------
        NoProjectDefinedError
            If the project does not exist.
        ProjectHasActiveFrameError
            If the running frame belongs to this project.
        """
        name = validate_name(name, "project name")
        logger.debug("archive_project %r", name)
        with _storage_boundary(), self._store.transaction():
            project = self._resolve_project(name, allow_archived=True)
            active = self._store.active_frame()
            if active is not None and active.project_id == project.id:
                raise ProjectHasActiveFrameError(
                    f"Project '{name}' is being timed right now.",
                    hint="Stop the running frame first with: ttt stop",
                )
            return self._store.archive_project(project.id, at=self._clock())

    def list_projects(self, include_archived: bool = False) -> list[Project]:
        with _storage_boundary():
            return self._store.list_projects(include_archived)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def create_tag(self, name: str) -> Tag:
        """Create a tag; names of archived tags may be reused.

        Raises
        ------
        DuplicateNameError
            If a live tag already uses *name*.
        """
        name = validate_name(name, "tag name")
        logger.debug("create_tag %r", name)
        with _storage_boundary(), self._store.transaction():
            try:
                return self._store.create_tag(name, at=self._clock())
            except DuplicateRowError as exc:
                raise DuplicateNameError(f"Tag '{name}' already exists.") from exc

    def archive_tag(self, name: str) -> Tag:
        name = validate_name(name, "tag name")
        logger.debug("archive_tag %r", name)
        with _storage_boundary(), self._store.transaction():
            tag = self._resolve_tag(name, allow_archived=True)
            return self._store.archive_tag(tag.id, at=self._clock())

    def list_tags(self, include_archived: bool = False) -> list[Tag]:
        with _storage_boundary():
            return self._store.list_tags(include_archived)

    def attach_tag(self, project_name: str, tag_name: str) -> Tag:
        """Attach a tag to a project.

        Attaching an already-attached tag succeeds without changes.

        Raises
        ------
        NoProjectDefinedError
            If the project does not exist or is archived.
        NotFoundError
            If the tag does not exist or is archived.
        """
        project_name = validate_name(project_name, "project name")
        tag_name = validate_name(tag_name, "tag name")
        logger.debug("attach_tag project=%r tag=%r", project_name, tag_name)
        with _storage_boundary(), self._store.transaction():
            project = self._resolve_project(project_name)
            tag = self._resolve_tag(tag_name)
            try:
                self._store.attach_tag(project.id, tag.id)
            except LinkExistsError:
                logger.debug("Tag %r already attached to %r", tag_name, project_name)
            return tag

    def detach_tag(self, project_name: str, tag_name: str) -> Tag:
        """Detach a tag from a project; succeeds even if it was not attached.

        Archived endpoints are accepted so stale links can be cleaned up.
        """
        project_name = validate_name(project_name, "project name")
        tag_name = validate_name(tag_name, "tag name")
        logger.debug("detach_tag project=%r tag=%r", project_name, tag_name)
        with _storage_boundary(), self._store.transaction():
            project = self._resolve_project(project_name, allow_archived=True)
            tag = self._resolve_tag(tag_name, allow_archived=True)
            self._store.detach_tag(project.id, tag.id)
            return tag

    def list_tags_for_project(self, project_name: str) -> list[Tag]:
        project_name = validate_name(project_name, "project name")
        with _storage_boundary(), self._store.transaction():
            project = self._resolve_project(project_name, allow_archived=True)
            return self._store.list_tags_for_project(project.id)

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _when(self, at: datetime | None) -> datetime:
        return normalize_timestamp(at) if at is not None else self._clock()

    def _resolve_project(self, name: str, *, allow_archived: bool = False) -> Project:
        """Find a project by name and record the access."""
        try:
            project = self._store.find_project(name=name)
        except RowNotFoundError as exc:
            raise NoProjectDefinedError(
                f"Project '{name}' does not exist.",
                hint=f"Create it with: ttt project create {name}",
            ) from exc
        if project.archived and not allow_archived:
            raise NoProjectDefinedError(f"Project '{name}' is archived.")
        self._store.touch_project(project.id, at=self._clock())
        return project

    def _resolve_tag(self, name: str, *, allow_archived: bool = False) -> Tag:
        try:
            tag = self._store.find_tag(name=name)
        except RowNotFoundError as exc:
            raise NotFoundError(
                f"Tag '{name}' does not exist.",
                hint=f"Create it with: ttt tag create {name}",
            ) from exc
        if tag.archived and not allow_archived:
            raise NotFoundError(f"Tag '{name}' is archived.")
        self._store.touch_tag(tag.id, at=self._clock())
        return tag

    def _already_active(self, frame_id: int) -> FrameAlreadyActiveError:
        frame = self._store.get_frame(frame_id)
        project = self._store.find_project(project_id=frame.project_id)
        return FrameAlreadyActiveError(
            f"Already tracking '{project.name}' since {frame.start.isoformat()}.",
            frame=frame,
            project_name=project.name,
            hint="Stop it first with: ttt stop",
        )

    def _duplicate_project_hint(self, name: str) -> str | None:
        try:
            existing = self._store.find_project(name=name)
        except RowNotFoundError:
            return None
        if existing.archived:
            return "The name belongs to an archived project; archived names stay reserved."
        return None
