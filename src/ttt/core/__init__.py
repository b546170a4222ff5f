"""Core / service layer — domain model and use-case orchestration.

Rules
-----
* No ``print()`` calls.
* No SQL, filesystem, or network I/O.
* No imports from ``cli`` or ``infra``.
* Storage is reached only through :class:`~ttt.core.protocols.Store`.
"""

from ttt.core.inquire import FrameSequence, Inquire
from ttt.core.models import Frame, Project, Tag, TimeRange
from ttt.core.protocols import Store

__all__: list[str] = [
    "Frame",
    "FrameSequence",
    "Inquire",
    "Project",
    "Store",
    "Tag",
    "TimeRange",
]
