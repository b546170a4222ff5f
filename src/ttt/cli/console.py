"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of Rich so
bootstrap paths (``--help``, ``--version``) remain functional even when
Rich is not installed.  Results go to stdout; errors and diagnostics go
to stderr.
"""

from __future__ import annotations

import re
import sys
from typing import Any, TextIO

# Only the styles ttt itself emits; "[wip]" in a project name is user text.
_STYLE = r"(?:bold|dim|red|green|yellow|cyan)"
_MARKUP = re.compile(rf"\[/?{_STYLE}(?: {_STYLE})*\]")


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console``; raises ``ModuleNotFoundError`` without Rich."""
    from rich.console import Console

    return Console


def get_rich_console(*, stderr: bool = False) -> Any:
    """Create a Rich console instance targeting stdout or stderr."""
    console_class = _load_rich_console_class()
    return console_class(stderr=stderr, highlight=False)


def strip_markup(text: str) -> str:
    """Drop Rich markup tags for plain-text output."""
    return _MARKUP.sub("", text)


def escape(text: str) -> str:
    """Escape user text so Rich does not read it as markup."""
    try:
        from rich.markup import escape as rich_escape
    except ModuleNotFoundError:
        return text
    return rich_escape(text)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def __init__(self, *, stderr: bool = False) -> None:
        self._stderr = stderr

    @property
    def stream(self) -> TextIO:
        return sys.stderr if self._stderr else sys.stdout

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain print."""
        try:
            rich_console = get_rich_console(stderr=self._stderr)
        except ModuleNotFoundError:
            print(*(strip_markup(str(obj)) for obj in objects), file=self.stream)
            return
        rich_console.print(*objects)


console = _ConsoleProxy()
err_console = _ConsoleProxy(stderr=True)
