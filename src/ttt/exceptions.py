"""Exception hierarchy for ttt.

Two families live here and they must never be confused:

* :class:`TttError` — the closed set of **domain errors** that cross
  the Inquire boundary and reach the CLI.  Each carries a user-facing
  message and an optional hint.
* :class:`StorageError` — **storage-level** failures raised by the
  SQLite store.  They never reach the CLI; Inquire translates every one
  of them into a :class:`TttError` subclass.

Hierarchy
---------
TttError
├── NoProjectDefinedError
├── DuplicateNameError
├── FrameAlreadyActiveError
├── NoActiveFrameError
├── InvalidTimeRangeError
├── ProjectHasActiveFrameError
├── NotFoundError
├── StorageUnavailableError
├── InvalidNameError
├── TimeSpanSyntaxError
└── DependencyMissingError

StorageError
├── DuplicateRowError
├── RowNotFoundError
├── LinkExistsError
├── ActiveFrameExistsError
├── NoOpenFrameError
└── InvalidRangeError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ttt.core.models import Frame


class TttError(Exception):
    """Base exception for all user-visible ttt errors.

    Every condition the CLI reports must map to a subclass of this
    exception so that the error boundary can render a clean message
    without leaking storage details or stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Projects --------------------------------------------------------------

class NoProjectDefinedError(TttError):
    """Raised when the referenced project does not exist or is archived."""


class DuplicateNameError(TttError):
    """Raised when creating a project or tag with a name already in use."""


class ProjectHasActiveFrameError(TttError):
    """Raised when archiving a project that is currently being timed."""


# --- Frames ----------------------------------------------------------------

class FrameAlreadyActiveError(TttError):
    """Raised when starting a frame while another one is running."""

    def __init__(
        self,
        message: str,
        *,
        frame: Frame,
        project_name: str,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.frame: Frame = frame
        self.project_name: str = project_name


class NoActiveFrameError(TttError):
    """Raised when stopping while no frame is running."""


class InvalidTimeRangeError(TttError):
    """Raised when an end time lies before its start time."""


# --- Tags / generic --------------------------------------------------------

class NotFoundError(TttError):
    """Raised when a referenced tag (or other entity) cannot be found."""


# --- Input boundary --------------------------------------------------------

class InvalidNameError(TttError):
    """Raised when a project or tag name is empty."""


class TimeSpanSyntaxError(TttError):
    """Raised when a time-span phrase cannot be parsed."""


# --- Fatal / environment ---------------------------------------------------

class StorageUnavailableError(TttError):
    """Raised when the store fails in a way no domain error describes."""


class DependencyMissingError(TttError):
    """Raised when an optional runtime dependency is not installed."""


# ---------------------------------------------------------------------------
# Storage-level errors
# ---------------------------------------------------------------------------

class StorageError(Exception):
    """Base exception for storage operations."""


class DuplicateRowError(StorageError):
    """Raised when a uniqueness constraint rejects an insert."""


class RowNotFoundError(StorageError):
    """Raised when a requested row doesn't exist."""


class LinkExistsError(StorageError):
    """Raised when a project/tag link is already present."""


class ActiveFrameExistsError(StorageError):
    """Raised when a frame is started while another one is unterminated."""

    def __init__(self, frame_id: int) -> None:
        super().__init__(f"Frame {frame_id} is still active")
        self.frame_id: int = frame_id


class NoOpenFrameError(StorageError):
    """Raised when stopping while no frame is unterminated."""


class InvalidRangeError(StorageError):
    """Raised when a frame would end before it started."""
