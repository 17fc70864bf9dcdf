"""Local-calendar-day arithmetic and ISO date helpers for Gitick.

Dates travel through the engine as ISO strings (YYYY-MM-DD) so they can be
compared lexicographically. Timestamps are epoch milliseconds.
"""

from __future__ import annotations

import re
import time
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Union

Clock = Callable[[], float]
DateLike = Union[date, str]

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def system_clock() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def is_iso_date(value: object) -> bool:
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def to_iso(day: date) -> str:
    return day.isoformat()


def parse_iso(value: DateLike) -> date:
    """Accept a date or an ISO string. Raises ValueError on bad strings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def local_date(ts_ms: float, tz: tzinfo | None = None) -> date:
    """Calendar day a timestamp falls on, in *tz* or the host's local zone."""
    return datetime.fromtimestamp(ts_ms / 1000, tz).date()


def today_iso(clock: Clock | None = None, tz: tzinfo | None = None) -> str:
    now = (clock or system_clock)()
    return to_iso(local_date(now, tz))


def resolve_today(today: DateLike | None) -> date:
    if today is None:
        return parse_iso(today_iso())
    return parse_iso(today)


def add_days(base: DateLike, days: int) -> str:
    return to_iso(parse_iso(base) + timedelta(days=days))


def day_diff(a: DateLike, b: DateLike) -> int:
    """Whole days from *a* to *b*."""
    return (parse_iso(b) - parse_iso(a)).days


def next_monday(day: DateLike) -> str:
    """The upcoming Monday. On a Monday this is seven days out."""
    d = parse_iso(day)
    return to_iso(d + timedelta(days=(7 - d.weekday()) % 7 or 7))


def sunday_on_or_before(day: DateLike) -> date:
    d = parse_iso(day)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def is_within_next_days(date_str: str | None, days: int, today: DateLike | None = None) -> bool:
    """True for any date at or before today + *days*, past dates included."""
    if not date_str:
        return False
    return date_str <= add_days(resolve_today(today), days)


def format_for_display(date_str: str | None, today: DateLike | None = None) -> str | None:
    """'Today', 'Tomorrow', or a short 'Oct 21' label."""
    if not date_str:
        return None
    t = resolve_today(today)
    if date_str == to_iso(t):
        return "Today"
    if date_str == add_days(t, 1):
        return "Tomorrow"
    if not is_iso_date(date_str):
        return date_str
    d = date.fromisoformat(date_str)
    return f"{d.strftime('%b')} {d.day}"
