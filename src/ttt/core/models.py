"""Domain models for ttt.

All models are **frozen** dataclasses — immutable value objects that
are transient copies of persisted rows.  They carry zero I/O and must
never be cached across Inquire calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ttt.exceptions import InvalidTimeRangeError


# ---------------------------------------------------------------------------
# Projects and tags
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Project:
    """A named activity that frames are recorded against."""

    id: int
    """Storage-assigned identifier, immutable after creation."""

    name: str
    """Unique across all projects, archived ones included."""

    archived: bool
    """Archived projects are hidden from default listings and timing."""

    last_access_time: datetime
    """Last time the project was used; drives LRU ordering."""


@dataclass(frozen=True, slots=True)
class Tag:
    """A label that can be attached to any number of projects."""

    id: int
    name: str
    archived: bool
    last_access_time: datetime


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Frame:
    """One recorded time interval against a project.

    A frame without an ``end`` is *active*.  At most one frame may be
    active at any time; the store guarantees this.
    """

    id: int
    project_id: int
    start: datetime
    end: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.end is None

    @property
    def duration(self) -> timedelta | None:
        """``end - start`` for completed frames, ``None`` while active."""
        if self.end is None:
            return None
        return self.end - self.start

    def elapsed(self, now: datetime) -> timedelta:
        """Time covered by the frame so far, measured up to *now* if active."""
        return (self.end if self.end is not None else now) - self.start


# ---------------------------------------------------------------------------
# Time ranges
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TimeRange:
    """Half-open interval ``[start, end)`` used to filter frames."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidTimeRangeError(
                f"Time range ends ({self.end.isoformat()}) before it starts "
                f"({self.start.isoformat()}).",
            )
