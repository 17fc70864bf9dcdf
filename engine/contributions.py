"""Completion heatmap and streak tracking for Gitick.

Aggregates completion timestamps into a day -> count map, computes streaks,
and lays out a GitHub-style calendar grid (weeks as columns, Sunday first).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Any, Iterable

from engine.dates import DateLike, day_diff, local_date, parse_iso, resolve_today, sunday_on_or_before, to_iso
from engine.models import Task

ABSOLUTE_INTENSITY_THRESHOLD = 4
INTENSITY_LEVELS = 4


# ── Results ───────────────────────────────────────────────────


@dataclass
class Streaks:
    longest: int = 0
    current: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"longest": self.longest, "current": self.current}


@dataclass
class WindowStats:
    visible_total: int = 0
    all_time_total: int = 0
    intensity_ceiling: int = 1

    def to_dict(self) -> dict[str, int]:
        return {
            "visibleTotal": self.visible_total,
            "allTimeTotal": self.all_time_total,
            "intensityCeiling": self.intensity_ceiling,
        }


@dataclass
class CalendarDay:
    date: str
    is_future: bool = False


@dataclass
class Heatmap:
    weeks: list[list[dict[str, Any]]] = field(default_factory=list)
    stats: WindowStats = field(default_factory=WindowStats)
    streaks: Streaks = field(default_factory=Streaks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "weeks": self.weeks,
            "stats": self.stats.to_dict(),
            "streaks": self.streaks.to_dict(),
        }


# ── Aggregation ───────────────────────────────────────────────


def _valid_timestamp(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def build_completion_map(tasks: Iterable[Task], tz: tzinfo | None = None) -> dict[str, int]:
    """Count completions per local calendar day (ISO date keys)."""
    counts: dict[str, int] = {}
    for task in tasks:
        if not task.completed or not _valid_timestamp(task.completed_at):
            continue
        key = to_iso(local_date(task.completed_at, tz))
        counts[key] = counts.get(key, 0) + 1
    return counts


def streaks(completion_map: dict[str, int], today: DateLike | None = None) -> Streaks:
    """Longest run of consecutive active days, and the run ending today.

    The current streak is 0 unless today itself has a completion.
    """
    active = sorted(day for day, count in completion_map.items() if count > 0)
    if not active:
        return Streaks()

    longest = run = 1
    for prev, nxt in zip(active, active[1:]):
        run = run + 1 if day_diff(prev, nxt) == 1 else 1
        longest = max(longest, run)

    current = 0
    check = resolve_today(today)
    while completion_map.get(to_iso(check), 0) > 0:
        current += 1
        check -= timedelta(days=1)

    return Streaks(longest=longest, current=current)


def visible_window_stats(
    completion_map: dict[str, int],
    window_start: DateLike,
    today: DateLike | None = None,
) -> WindowStats:
    start = to_iso(parse_iso(window_start))
    end = to_iso(resolve_today(today))

    visible = [count for day, count in completion_map.items() if start <= day <= end]
    return WindowStats(
        visible_total=sum(visible),
        all_time_total=sum(completion_map.values()),
        intensity_ceiling=max([1, *visible]),
    )


def intensity_level(count: int, ceiling: int) -> int:
    """Bucket a day's count into 0..4 for colouring.

    Small ceilings use the absolute count; larger ones scale by quartile.
    """
    if count <= 0:
        return 0
    if ceiling <= ABSOLUTE_INTENSITY_THRESHOLD:
        return min(count, INTENSITY_LEVELS)
    return max(1, min(INTENSITY_LEVELS, math.ceil(count / ceiling * INTENSITY_LEVELS)))


# ── Calendar grid ─────────────────────────────────────────────


def window_start_for(weeks_to_show: int, today: DateLike | None = None) -> date:
    """First Sunday of a window of *weeks_to_show* weeks ending this week."""
    this_sunday = sunday_on_or_before(resolve_today(today))
    return this_sunday - timedelta(weeks=max(weeks_to_show, 1) - 1)


def build_calendar_grid(
    window_start: DateLike,
    weeks_to_show: int,
    today: DateLike | None = None,
) -> list[list[CalendarDay]]:
    """Columns of seven days from *window_start*; days after today are flagged."""
    start = parse_iso(window_start)
    today_str = to_iso(resolve_today(today))

    grid = []
    for col in range(weeks_to_show):
        week = []
        for row in range(7):
            day = to_iso(start + timedelta(days=col * 7 + row))
            week.append(CalendarDay(date=day, is_future=day > today_str))
        grid.append(week)
    return grid


def build_heatmap(
    tasks: Iterable[Task],
    weeks_to_show: int,
    today: DateLike | None = None,
    tz: tzinfo | None = None,
) -> Heatmap:
    """Everything the heatmap view needs in one pass."""
    today_date = resolve_today(today)
    completion_map = build_completion_map(tasks, tz)
    start = window_start_for(weeks_to_show, today_date)
    stats = visible_window_stats(completion_map, start, today_date)

    weeks = []
    for week in build_calendar_grid(start, weeks_to_show, today_date):
        cells = []
        for day in week:
            count = 0 if day.is_future else completion_map.get(day.date, 0)
            cells.append({
                "date": day.date,
                "isFuture": day.is_future,
                "count": count,
                "level": intensity_level(count, stats.intensity_ceiling),
            })
        weeks.append(cells)

    return Heatmap(
        weeks=weeks,
        stats=stats,
        streaks=streaks(completion_map, today_date),
    )
