"""Pure validation and normalisation helpers for the domain model.

Every function in this module is a **pure** transformation — no I/O,
no side effects.  Inquire calls them before touching the store; the
store relies on them for timestamp encoding.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ttt.exceptions import InvalidNameError, InvalidTimeRangeError


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def validate_name(name: str, kind: str = "name") -> str:
    """Return *name* stripped of surrounding whitespace.

    Raises
    ------
    InvalidNameError
        If nothing remains after stripping.
    """
    stripped = name.strip()
    if not stripped:
        raise InvalidNameError(f"The {kind} must not be empty.")
    return stripped


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_timestamp(value: datetime) -> datetime:
    """Convert *value* to an aware UTC datetime.

    Naive datetimes are interpreted as local time, matching how users
    type times on the command line.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc)


def encode_timestamp(value: datetime) -> str:
    """Render a timestamp as fixed-width UTC ISO-8601 text.

    The fixed microsecond precision keeps lexical order equal to
    chronological order inside SQLite.
    """
    return normalize_timestamp(value).isoformat(timespec="microseconds")


def decode_timestamp(text: str) -> datetime:
    """Inverse of :func:`encode_timestamp`."""
    return normalize_timestamp(datetime.fromisoformat(text))


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------

def validate_range(start: datetime, end: datetime) -> None:
    """Raise :class:`InvalidTimeRangeError` when *end* precedes *start*."""
    if normalize_timestamp(end) < normalize_timestamp(start):
        raise InvalidTimeRangeError(
            f"End time {end.isoformat()} is before start time {start.isoformat()}.",
        )


def format_duration(delta: timedelta) -> str:
    """Render *delta* as ``H:MM:SS`` (negative deltas get a leading ``-``)."""
    total = int(delta.total_seconds())
    sign = "-" if total < 0 else ""
    hours, rem = divmod(abs(total), 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{sign}{hours}:{minutes:02d}:{seconds:02d}"
