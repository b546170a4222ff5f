"""Infrastructure layer — persistence and platform integration.

This layer wraps all interaction with SQLite and the operating system.
Raw ``sqlite3`` exceptions never leave it: constraint violations become
storage-level errors, and failures to open the database become
:class:`~ttt.exceptions.StorageUnavailableError`.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from ttt.infra.database_location import DatabaseLocation, locate_database
from ttt.infra.sqlite_store import FrameQuery, SqliteStore, open_store

__all__: list[str] = [
    "DatabaseLocation",
    "FrameQuery",
    "SqliteStore",
    "locate_database",
    "open_store",
]
