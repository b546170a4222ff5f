"""Process exit codes returned by ``ttt``.

Scripts wrapping ``ttt`` (status bars, shell prompts) branch on these,
so every exit path goes through one of the names below.
"""

from __future__ import annotations

SUCCESS: int = 0
"""The command ran; ``ttt doctor`` also uses it when no check failed."""

GENERAL_ERROR: int = 1
"""A domain error (``TttError``) was reported, or a doctor check failed."""

KEYBOARD_INTERRUPT: int = 130
"""Ctrl+C, e.g. while picking a project.  128 + SIGINT, as shells expect."""

UNEXPECTED_ERROR: int = 2
"""A bug: an exception that is not a ``TttError`` reached :func:`cli`."""
