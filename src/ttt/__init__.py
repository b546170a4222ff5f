"""ttt — a small personal time-tracking tool.

Projects, tags, and timed frames in a local SQLite store, behind a
strict layered architecture.
"""

from ttt.version import __version__

__all__: list[str] = ["__version__"]
