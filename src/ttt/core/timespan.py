"""Pure parsing of human time-span phrases into :class:`TimeRange`.

Every function in this module is deterministic: the reference *now* is
always passed in, and day boundaries are computed in *now*'s own
timezone.

Pipeline order (enforced by :func:`parse_time_span`):

1. **Tokenize** — map each word to a :class:`Token`.
2. **Parse points** — turn token runs into ``(start, end)`` periods.
3. **Join** — ``A to B`` spans from the start of *A* to the end of *B*.

Supported phrases::

    today | yesterday
    this week|month|year         last week|month|year
    monday … sunday              last monday … last sunday
    january … december
    last N days|weeks
    YYYY-MM-DD | YYYY-MM
    <phrase> to|until <phrase>
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from ttt.core.models import TimeRange
from ttt.exceptions import TimeSpanSyntaxError

WEEKDAYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)
MONTHS: tuple[str, ...] = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)
UNITS: dict[str, str] = {
    "day": "day", "days": "day",
    "week": "week", "weeks": "week",
    "month": "month", "months": "month",
    "year": "year", "years": "year",
}

_ISO_MONTH = re.compile(r"^(\d{4})-(\d{2})$", re.ASCII)


# ---------------------------------------------------------------------------
# 1. Tokenize
# ---------------------------------------------------------------------------

class Kind(Enum):
    DAY = "day"              # value: offset in days (0 = today)
    UNIT = "unit"            # value: "day" | "week" | "month" | "year"
    WEEKDAY = "weekday"      # value: 0 = Monday
    MONTH = "month"          # value: 1 = January
    LAST = "last"
    THIS = "this"
    TO = "to"
    NUMBER = "number"
    DATE = "date"            # value: datetime.date
    PARTIAL_DATE = "partial"  # value: (year, month)


@dataclass(frozen=True, slots=True)
class Token:
    kind: Kind
    value: object = None
    text: str = ""


def tokenize(words: Sequence[str]) -> list[Token]:
    """Classify each word; unknown words raise :class:`TimeSpanSyntaxError`."""
    return [_classify(word) for word in words]


def _classify(word: str) -> Token:
    lowered = word.strip().lower()
    fixed = {
        "today": Token(Kind.DAY, 0, word),
        "yesterday": Token(Kind.DAY, -1, word),
        "last": Token(Kind.LAST, None, word),
        "this": Token(Kind.THIS, None, word),
        "to": Token(Kind.TO, None, word),
        "until": Token(Kind.TO, None, word),
    }
    if lowered in fixed:
        return fixed[lowered]
    if lowered in WEEKDAYS:
        return Token(Kind.WEEKDAY, WEEKDAYS.index(lowered), word)
    if lowered in MONTHS:
        return Token(Kind.MONTH, MONTHS.index(lowered) + 1, word)
    if lowered in UNITS:
        return Token(Kind.UNIT, UNITS[lowered], word)
    if lowered.isascii() and lowered.isdigit():
        return Token(Kind.NUMBER, int(lowered), word)
    match = _ISO_MONTH.match(lowered)
    if match and 1 <= int(match.group(2)) <= 12:
        return Token(Kind.PARTIAL_DATE, (int(match.group(1)), int(match.group(2))), word)
    try:
        return Token(Kind.DATE, date.fromisoformat(lowered), word)
    except ValueError:
        pass
    raise TimeSpanSyntaxError(
        f"Unknown word in time span: '{word}'",
        hint="Try phrases like 'today', 'last week' or '2024-03-01 to 2024-03-15'.",
    )


# ---------------------------------------------------------------------------
# 2. Parse points
# ---------------------------------------------------------------------------

Period = tuple[datetime, datetime]


def _midnight(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)


def _day(day: date, now: datetime) -> Period:
    start = _midnight(day, now)
    return start, start + timedelta(days=1)


def _month(year: int, month: int, now: datetime) -> Period:
    start = _midnight(date(year, month, 1), now)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return start, _midnight(date(next_year, next_month, 1), now)


def _week(monday: date, now: datetime) -> Period:
    start = _midnight(monday, now)
    return start, start + timedelta(days=7)


def _unit_period(unit: str, now: datetime, *, previous: bool) -> Period:
    today = now.date()
    if unit == "day":
        day = today - timedelta(days=1) if previous else today
        return _day(day, now)
    if unit == "week":
        monday = today - timedelta(days=today.weekday())
        if previous:
            monday -= timedelta(days=7)
        return _week(monday, now)
    if unit == "month":
        year, month = today.year, today.month
        if previous:
            year, month = (year - 1, 12) if month == 1 else (year, month - 1)
        return _month(year, month, now)
    year = today.year - 1 if previous else today.year
    return _midnight(date(year, 1, 1), now), _midnight(date(year + 1, 1, 1), now)


def _expect_end(tokens: list[Token], pos: int) -> None:
    if pos < len(tokens) and tokens[pos].kind is not Kind.TO:
        raise TimeSpanSyntaxError(f"Unexpected word in time span: '{tokens[pos].text}'")


def _parse_point(tokens: list[Token], pos: int, now: datetime) -> tuple[Period, int]:
    """Parse one period starting at *pos*; return it and the next position."""
    if pos >= len(tokens):
        raise TimeSpanSyntaxError("Time span is incomplete.")
    token = tokens[pos]
    today = now.date()

    if token.kind is Kind.DAY:
        offset = int(token.value)  # type: ignore[arg-type]
        return _day(today + timedelta(days=offset), now), pos + 1

    if token.kind is Kind.DATE:
        return _day(token.value, now), pos + 1  # type: ignore[arg-type]

    if token.kind is Kind.PARTIAL_DATE:
        year, month = token.value  # type: ignore[misc]
        return _month(year, month, now), pos + 1

    if token.kind is Kind.WEEKDAY:
        back = (today.weekday() - int(token.value)) % 7  # type: ignore[arg-type]
        return _day(today - timedelta(days=back), now), pos + 1

    if token.kind is Kind.MONTH:
        month = int(token.value)  # type: ignore[arg-type]
        year = today.year if month <= today.month else today.year - 1
        return _month(year, month, now), pos + 1

    if token.kind in (Kind.THIS, Kind.LAST):
        previous = token.kind is Kind.LAST
        if pos + 1 >= len(tokens):
            raise TimeSpanSyntaxError(f"'{token.text}' must be followed by a period.")
        nxt = tokens[pos + 1]
        if nxt.kind is Kind.UNIT:
            return _unit_period(str(nxt.value), now, previous=previous), pos + 2
        if nxt.kind is Kind.WEEKDAY and previous:
            back = (today.weekday() - int(nxt.value)) % 7 or 7  # type: ignore[arg-type]
            return _day(today - timedelta(days=back), now), pos + 2
        if nxt.kind is Kind.NUMBER and previous:
            return _parse_last_n(tokens, pos + 2, int(nxt.value), now)  # type: ignore[arg-type]
        raise TimeSpanSyntaxError(f"Unexpected word after '{token.text}': '{nxt.text}'")

    if token.kind is Kind.TO:
        raise TimeSpanSyntaxError("A time span cannot start with 'to' or 'until'.")

    raise TimeSpanSyntaxError(f"Unexpected word in time span: '{token.text}'")


def _parse_last_n(tokens: list[Token], pos: int, count: int, now: datetime) -> tuple[Period, int]:
    """``last N days|weeks`` — the rolling window ending at *now*."""
    if pos >= len(tokens) or tokens[pos].kind is not Kind.UNIT:
        raise TimeSpanSyntaxError("'last N' must be followed by 'days' or 'weeks'.")
    unit = tokens[pos].value
    if unit == "day":
        delta = timedelta(days=count)
    elif unit == "week":
        delta = timedelta(weeks=count)
    else:
        raise TimeSpanSyntaxError("'last N' only supports days or weeks.")
    return (now - delta, now), pos + 1


# ---------------------------------------------------------------------------
# 3. Join
# ---------------------------------------------------------------------------

def parse_time_span(words: Sequence[str], now: datetime) -> TimeRange:
    """Parse *words* (already split on whitespace) into a :class:`TimeRange`.

    Periods never extend past *now*: "today" ends at *now*, not midnight.

    Raises
    ------
    TimeSpanSyntaxError
        For empty input, unknown words, malformed phrases, or periods
        that fall outside the dates Python can represent.
    InvalidTimeRangeError
        When the right side of ``A to B`` ends before *A* starts.
    """
    if now.tzinfo is None:
        now = now.astimezone()
    tokens = tokenize(words)
    if not tokens:
        raise TimeSpanSyntaxError("Time span is empty.")

    try:
        (start, end), pos = _parse_point(tokens, 0, now)
        _expect_end(tokens, pos)
        if pos < len(tokens):
            (_, end), pos = _parse_point(tokens, pos + 1, now)
            if pos < len(tokens):
                raise TimeSpanSyntaxError(f"Unexpected word in time span: '{tokens[pos].text}'")
    except (OverflowError, ValueError) as exc:
        # date/datetime arithmetic past year 1 or 9999
        raise TimeSpanSyntaxError(
            f"Time span is out of range: '{' '.join(words)}'",
            hint="Dates must fall between years 1 and 9999.",
        ) from exc

    if start <= now < end:
        end = now
    return TimeRange(start=start, end=end)
