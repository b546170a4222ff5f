"""Infrastructure: database file location.

Resolves where the SQLite store lives on the current platform.

Rules
-----
* ``TTT_DATABASE`` in the environment always wins.
* Otherwise use the per-user data directory (XDG on Linux/macOS,
  ``%APPDATA%`` on Windows).
* Resolution is pure; the directory is created only when the store is
  opened.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

ENV_VAR = "TTT_DATABASE"
APP_DIR = "ttt"
DB_FILENAME = "timetable.db"


@dataclass(frozen=True, slots=True)
class DatabaseLocation:
    """Result of resolving the database path.

    Attributes
    ----------
    path : Path
        Where the SQLite file is (or will be) stored.
    source : str
        ``"option"``, ``"env"`` or ``"default"`` — how the path was chosen.
    """

    path: Path
    source: str

    @property
    def exists(self) -> bool:
        return self.path.exists()


def locate_database(
    env: Mapping[str, str] | None = None,
    *,
    override: str | os.PathLike[str] | None = None,
) -> DatabaseLocation:
    """Resolve the database path.

    Parameters
    ----------
    env:
        Environment mapping; ``os.environ`` when ``None``.
    override:
        Explicit path (e.g. from ``--database``); beats everything else.
    """
    if override is not None:
        return DatabaseLocation(path=Path(override).expanduser(), source="option")

    environ = os.environ if env is None else env
    configured = environ.get(ENV_VAR, "").strip()
    if configured:
        return DatabaseLocation(path=Path(configured).expanduser(), source="env")

    return DatabaseLocation(
        path=_data_dir(environ) / APP_DIR / DB_FILENAME,
        source="default",
    )


def _data_dir(environ: Mapping[str, str]) -> Path:
    """Return the per-user data directory for the current OS."""
    if platform.system().lower() == "windows":
        appdata = environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    xdg = environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"
