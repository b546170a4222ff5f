"""Shared pytest fixtures and configuration for the ttt test suite.

Guidelines
----------
* Every store lives in ``tmp_path`` — never the user's real database.
* Time is controlled through :class:`FakeClock`; tests never sleep.
* Core tests must not depend on the machine's timezone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from ttt.core.inquire import Inquire
from ttt.infra.sqlite_store import SqliteStore

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "ttt" / "timetable.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[SqliteStore]:
    sqlite_store = SqliteStore.connect(db_path)
    try:
        yield sqlite_store
    finally:
        sqlite_store.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def inquire(store: SqliteStore, clock: FakeClock) -> Inquire:
    return Inquire(store, clock=clock)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """``main()`` reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
