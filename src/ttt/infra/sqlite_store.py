"""SQLite implementation of :class:`~ttt.core.protocols.Store`.

This module is the **only** place in the codebase that contains SQL or
imports ``sqlite3``.  Constraint violations are mapped to the
storage-level exceptions of :mod:`ttt.exceptions`; every other
``sqlite3.Error`` surfaces as a plain :class:`StorageError`.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from ttt.core.models import Frame, Project, Tag, TimeRange
from ttt.core.validation import (
    decode_timestamp,
    encode_timestamp,
    normalize_timestamp,
    utc_now,
)
from ttt.exceptions import (
    ActiveFrameExistsError,
    DuplicateRowError,
    InvalidRangeError,
    LinkExistsError,
    NoOpenFrameError,
    RowNotFoundError,
    StorageError,
    StorageUnavailableError,
)
from ttt.infra.schema import SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


# ---------------------------------------------------------------------------
# Row → model converters
# ---------------------------------------------------------------------------

def _project_from_row(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        archived=bool(row["archived"]),
        last_access_time=decode_timestamp(row["last_access_time"]),
    )


def _tag_from_row(row: sqlite3.Row) -> Tag:
    return Tag(
        id=row["id"],
        name=row["name"],
        archived=bool(row["archived"]),
        last_access_time=decode_timestamp(row["last_access_time"]),
    )


def _frame_from_row(row: sqlite3.Row) -> Frame:
    end = row["end"]
    return Frame(
        id=row["id"],
        project_id=row["project"],
        start=decode_timestamp(row["start"]),
        end=decode_timestamp(end) if end is not None else None,
    )


@contextmanager
def _guard() -> Iterator[None]:
    """Re-raise any raw ``sqlite3.Error`` as :class:`StorageError`."""
    try:
        yield
    except sqlite3.Error as exc:
        raise StorageError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Lazy frame sequence
# ---------------------------------------------------------------------------

class FrameQuery:
    """Lazy, finite, restartable sequence of frames.

    Nothing is read until iteration starts, and every new iteration runs
    the query again so the result always reflects the current store.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: tuple[Any, ...],
    ) -> None:
        self._connection = connection
        self._sql = sql
        self._params = params

    def __iter__(self) -> Iterator[Frame]:
        with _guard():
            cursor = self._connection.execute(self._sql, self._params)
            for row in cursor:
                yield _frame_from_row(row)

    def __repr__(self) -> str:
        return f"FrameQuery(params={self._params!r})"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SqliteStore:
    """Concrete :class:`~ttt.core.protocols.Store` backed by SQLite.

    Usage::

        with open_store(path) as store:
            project = store.create_project("writing")

    The connection runs in autocommit mode; :meth:`transaction` issues
    ``BEGIN IMMEDIATE`` at the outermost level so concurrent ``ttt``
    processes serialise on the write lock, and uses savepoints when
    nested.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._depth = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def connect(cls, path: str | Path, *, timeout: float = 5.0) -> SqliteStore:
        """Open (and if needed initialise) the database at *path*.

        Raises
        ------
        StorageUnavailableError
            When the file cannot be created, opened, or initialised.
        """
        target = str(path)
        try:
            if target != MEMORY:
                Path(target).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(target, timeout=timeout, isolation_level=None)
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailableError(
                f"Cannot open database {target}: {exc}",
                hint="Check the path or set TTT_DATABASE to a writable location.",
            ) from exc

        try:
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys=ON")
            if target != MEMORY:
                connection.execute("PRAGMA journal_mode=WAL")
            connection.executescript(SCHEMA_SQL)
            connection.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
        except sqlite3.Error as exc:
            connection.close()
            raise StorageUnavailableError(
                f"Cannot initialise database {target}: {exc}",
                hint="The file may not be a ttt database.",
            ) from exc

        logger.debug("Opened database %s (schema v%d)", target, SCHEMA_VERSION)
        return cls(connection)

    def close(self) -> None:
        self._connection.close()

    def schema_version(self) -> int:
        with _guard():
            return int(self._connection.execute("PRAGMA user_version").fetchone()[0])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Atomic unit of work; re-entrant through savepoints."""
        rollback: tuple[str, ...]
        if self._depth == 0:
            begin, commit, rollback = "BEGIN IMMEDIATE", "COMMIT", ("ROLLBACK",)
        else:
            savepoint = f"sp_{self._depth}"
            begin = f"SAVEPOINT {savepoint}"
            commit = f"RELEASE {savepoint}"
            rollback = (f"ROLLBACK TO {savepoint}", f"RELEASE {savepoint}")

        with _guard():
            self._connection.execute(begin)
        self._depth += 1
        try:
            with _guard():
                yield
        except BaseException:
            self._depth -= 1
            # SQLite may already have rolled back on its own (e.g. disk full).
            if self._connection.in_transaction:
                with _guard():
                    for statement in rollback:
                        self._connection.execute(statement)
            raise
        self._depth -= 1
        with _guard():
            self._connection.execute(commit)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, name: str, at: datetime | None = None) -> Project:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            try:
                cursor = self._connection.execute(
                    "INSERT INTO projects (name, archived, last_access_time) VALUES (?, 0, ?)",
                    (name, stamp),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE constraint" in str(exc):
                    raise DuplicateRowError(f"Project '{name}' already exists") from exc
                raise StorageError(str(exc)) from exc
            project_id = cursor.lastrowid
        logger.debug("Created project %r (id=%s)", name, project_id)
        return self.find_project(project_id=project_id)

    def find_project(
        self,
        *,
        name: str | None = None,
        project_id: int | None = None,
    ) -> Project:
        if (name is None) == (project_id is None):
            raise ValueError("Pass exactly one of name or project_id")
        column, key = ("name", name) if name is not None else ("id", project_id)
        with _guard():
            row = self._connection.execute(
                f"SELECT id, name, archived, last_access_time FROM projects WHERE {column} = ?",
                (key,),
            ).fetchone()
        if row is None:
            raise RowNotFoundError(f"No project with {column} {key!r}")
        return _project_from_row(row)

    def list_projects(self, include_archived: bool = False) -> list[Project]:
        sql = "SELECT id, name, archived, last_access_time FROM projects"
        if not include_archived:
            sql += " WHERE archived = 0"
        sql += " ORDER BY last_access_time DESC, id DESC"
        with _guard():
            return [_project_from_row(row) for row in self._connection.execute(sql)]

    def archive_project(self, project_id: int, at: datetime | None = None) -> Project:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            cursor = self._connection.execute(
                "UPDATE projects SET archived = 1, last_access_time = ? WHERE id = ?",
                (stamp, project_id),
            )
            if cursor.rowcount == 0:
                raise RowNotFoundError(f"No project with id {project_id}")
        logger.debug("Archived project id=%s", project_id)
        return self.find_project(project_id=project_id)

    def touch_project(self, project_id: int, at: datetime | None = None) -> None:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            cursor = self._connection.execute(
                "UPDATE projects SET last_access_time = ? WHERE id = ?",
                (stamp, project_id),
            )
            if cursor.rowcount == 0:
                raise RowNotFoundError(f"No project with id {project_id}")

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def create_tag(self, name: str, at: datetime | None = None) -> Tag:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            try:
                cursor = self._connection.execute(
                    "INSERT INTO tags (name, archived, last_access_time) VALUES (?, 0, ?)",
                    (name, stamp),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE constraint" in str(exc):
                    raise DuplicateRowError(f"Tag '{name}' already exists") from exc
                raise StorageError(str(exc)) from exc
            tag_id = cursor.lastrowid
        logger.debug("Created tag %r (id=%s)", name, tag_id)
        return self.find_tag(tag_id=tag_id)

    def find_tag(self, *, name: str | None = None, tag_id: int | None = None) -> Tag:
        """Look a tag up by id, or by name preferring the live row.

        When only archived tags carry *name*, the most recently used one
        is returned.
        """
        if (name is None) == (tag_id is None):
            raise ValueError("Pass exactly one of name or tag_id")
        if name is not None:
            sql = (
                "SELECT id, name, archived, last_access_time FROM tags WHERE name = ? "
                "ORDER BY archived ASC, last_access_time DESC, id DESC LIMIT 1"
            )
            key: object = name
        else:
            sql = "SELECT id, name, archived, last_access_time FROM tags WHERE id = ?"
            key = tag_id
        with _guard():
            row = self._connection.execute(sql, (key,)).fetchone()
        if row is None:
            raise RowNotFoundError(f"No tag {key!r}")
        return _tag_from_row(row)

    def list_tags(self, include_archived: bool = False) -> list[Tag]:
        sql = "SELECT id, name, archived, last_access_time FROM tags"
        if not include_archived:
            sql += " WHERE archived = 0"
        sql += " ORDER BY last_access_time DESC, id DESC"
        with _guard():
            return [_tag_from_row(row) for row in self._connection.execute(sql)]

    def archive_tag(self, tag_id: int, at: datetime | None = None) -> Tag:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            cursor = self._connection.execute(
                "UPDATE tags SET archived = 1, last_access_time = ? WHERE id = ?",
                (stamp, tag_id),
            )
            if cursor.rowcount == 0:
                raise RowNotFoundError(f"No tag with id {tag_id}")
        logger.debug("Archived tag id=%s", tag_id)
        return self.find_tag(tag_id=tag_id)

    def touch_tag(self, tag_id: int, at: datetime | None = None) -> None:
        stamp = encode_timestamp(at or utc_now())
        with self.transaction():
            cursor = self._connection.execute(
                "UPDATE tags SET last_access_time = ? WHERE id = ?",
                (stamp, tag_id),
            )
            if cursor.rowcount == 0:
                raise RowNotFoundError(f"No tag with id {tag_id}")

    def attach_tag(self, project_id: int, tag_id: int) -> None:
        with self.transaction():
            self.find_project(project_id=project_id)
            self.find_tag(tag_id=tag_id)
            try:
                self._connection.execute(
                    "INSERT INTO tags_per_project (project_id, tag_id) VALUES (?, ?)",
                    (project_id, tag_id),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE constraint" in str(exc):
                    raise LinkExistsError(
                        f"Tag {tag_id} is already attached to project {project_id}",
                    ) from exc
                raise RowNotFoundError(str(exc)) from exc
        logger.debug("Attached tag id=%s to project id=%s", tag_id, project_id)

    def detach_tag(self, project_id: int, tag_id: int) -> None:
        with self.transaction():
            self._connection.execute(
                "DELETE FROM tags_per_project WHERE project_id = ? AND tag_id = ?",
                (project_id, tag_id),
            )
        logger.debug("Detached tag id=%s from project id=%s", tag_id, project_id)

    def list_tags_for_project(
        self,
        project_id: int,
        include_archived: bool = False,
    ) -> list[Tag]:
        sql = (
            "SELECT t.id, t.name, t.archived, t.last_access_time FROM tags AS t "
            "JOIN tags_per_project AS tp ON tp.tag_id = t.id WHERE tp.project_id = ?"
        )
        if not include_archived:
            sql += " AND t.archived = 0"
        sql += " ORDER BY t.name, t.id"
        with _guard():
            return [_tag_from_row(row) for row in self._connection.execute(sql, (project_id,))]

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def active_frame(self) -> Frame | None:
        with _guard():
            row = self._connection.execute(
                'SELECT id, project, start, "end" FROM frames WHERE "end" IS NULL',
            ).fetchone()
        return _frame_from_row(row) if row is not None else None

    def get_frame(self, frame_id: int) -> Frame:
        with _guard():
            row = self._connection.execute(
                'SELECT id, project, start, "end" FROM frames WHERE id = ?',
                (frame_id,),
            ).fetchone()
        if row is None:
            raise RowNotFoundError(f"No frame with id {frame_id}")
        return _frame_from_row(row)

    def start_frame(
        self,
        project_id: int,
        start_time: datetime,
        at: datetime | None = None,
    ) -> Frame:
        start = normalize_timestamp(start_time)
        with self.transaction():
            self.find_project(project_id=project_id)
            active = self.active_frame()
            if active is not None:
                raise ActiveFrameExistsError(active.id)
            try:
                cursor = self._connection.execute(
                    "INSERT INTO frames (project, start) VALUES (?, ?)",
                    (project_id, encode_timestamp(start)),
                )
            except sqlite3.IntegrityError as exc:
                current = self.active_frame()
                if current is not None:
                    raise ActiveFrameExistsError(current.id) from exc
                raise StorageError(str(exc)) from exc
            frame_id = cursor.lastrowid
            self.touch_project(project_id, at=at)
        logger.debug("Started frame id=%s for project id=%s", frame_id, project_id)
        return Frame(id=frame_id, project_id=project_id, start=start)

    def stop_frame(self, end_time: datetime, at: datetime | None = None) -> Frame:
        end = normalize_timestamp(end_time)
        with self.transaction():
            active = self.active_frame()
            if active is None:
                raise NoOpenFrameError("No frame is active")
            if end < active.start:
                raise InvalidRangeError(
                    f"Frame {active.id} cannot end at {end.isoformat()} "
                    f"before its start {active.start.isoformat()}",
                )
            self._connection.execute(
                'UPDATE frames SET "end" = ? WHERE id = ? AND "end" IS NULL',
                (encode_timestamp(end), active.id),
            )
            self.touch_project(active.project_id, at=at)
        logger.debug("Stopped frame id=%s", active.id)
        return replace(active, end=end)

    def list_frames(
        self,
        project_id: int | None = None,
        time_range: TimeRange | None = None,
    ) -> FrameQuery:
        clauses: list[str] = []
        params: list[Any] = []
        if project_id is not None:
            clauses.append("project = ?")
            params.append(project_id)
        if time_range is not None:
            clauses.append('start < ? AND ("end" IS NULL OR "end" >= ?)')
            params.extend(
                (encode_timestamp(time_range.end), encode_timestamp(time_range.start)),
            )
        sql = 'SELECT id, project, start, "end" FROM frames'
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY start ASC, id ASC"
        return FrameQuery(self._connection, sql, tuple(params))


# ---------------------------------------------------------------------------
# Scoped acquisition
# ---------------------------------------------------------------------------

@contextmanager
def open_store(path: str | Path, *, timeout: float = 5.0) -> Iterator[SqliteStore]:
    """Open the store for the duration of one command.

    The connection is closed on every exit path, including errors.
    """
    store = SqliteStore.connect(path, timeout=timeout)
    try:
        yield store
    finally:
        store.close()


def sqlite_library_version() -> str:
    """Version of the SQLite library Python is linked against."""
    return sqlite3.sqlite_version
