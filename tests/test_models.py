"""Tests for domain models (core/models.py).

All models are frozen dataclasses — these tests verify immutability,
derived properties, and time-range validation.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from ttt.core.models import Frame, Project, Tag, TimeRange
from ttt.exceptions import InvalidTimeRangeError

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


def _make_frame(**overrides: object) -> Frame:
    """Factory with sensible defaults for concise tests."""
    defaults: dict[str, object] = {
        "id": 1,
        "project_id": 7,
        "start": T0,
        "end": T0 + timedelta(hours=1),
    }
    defaults.update(overrides)
    return Frame(**defaults)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Project / Tag
# ---------------------------------------------------------------------------

class TestProject:
    def test_fields_accessible(self) -> None:
        p = Project(id=3, name="writing", archived=False, last_access_time=T0)
        assert p.id == 3
        assert p.name == "writing"
        assert p.archived is False
        assert p.last_access_time == T0

    def test_frozen(self) -> None:
        p = Project(id=3, name="writing", archived=False, last_access_time=T0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.name = "reading"  # type: ignore[misc]

    def test_equality(self) -> None:
        a = Project(id=3, name="writing", archived=False, last_access_time=T0)
        b = Project(id=3, name="writing", archived=False, last_access_time=T0)
        assert a == b


class TestTag:
    def test_frozen(self) -> None:
        t = Tag(id=1, name="urgent", archived=False, last_access_time=T0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            t.archived = True  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------

class TestFrame:
    def test_completed_frame_has_duration(self) -> None:
        assert _make_frame().duration == timedelta(hours=1)

    def test_completed_frame_is_not_active(self) -> None:
        assert _make_frame().is_active is False

    def test_active_frame(self) -> None:
        frame = _make_frame(end=None)
        assert frame.is_active is True
        assert frame.duration is None

    def test_elapsed_active_uses_now(self) -> None:
        frame = _make_frame(end=None)
        assert frame.elapsed(T0 + timedelta(minutes=25)) == timedelta(minutes=25)

    def test_elapsed_completed_ignores_now(self) -> None:
        frame = _make_frame()
        assert frame.elapsed(T0 + timedelta(days=3)) == timedelta(hours=1)

    def test_zero_length_frame(self) -> None:
        assert _make_frame(end=T0).duration == timedelta(0)


# ---------------------------------------------------------------------------
# TimeRange
# ---------------------------------------------------------------------------

class TestTimeRange:
    def test_valid_range(self) -> None:
        r = TimeRange(start=T0, end=T0 + timedelta(days=1))
        assert r.end - r.start == timedelta(days=1)

    def test_empty_range_allowed(self) -> None:
        TimeRange(start=T0, end=T0)

    def test_reversed_range_rejected(self) -> None:
        with pytest.raises(InvalidTimeRangeError):
            TimeRange(start=T0, end=T0 - timedelta(seconds=1))
