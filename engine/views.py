"""View derivation: filtering, sorting, dashboard grouping and counts.

Every function is a pure projection of the task list; nothing is cached.
"""

from __future__ import annotations

from typing import Iterable

from engine.dates import DateLike, add_days, is_within_next_days, resolve_today, to_iso
from engine.models import INBOX, Task

VIEW_ALL = "all"
VIEW_TODAY = "today"
VIEW_NEXT_7_DAYS = "next7days"
VIEW_INBOX = "inbox"
VIEW_COMPLETED = "completed"
VIEW_FOCUS = "focus"

HORIZON_DAYS = 7

DASHBOARD_BUCKETS = ("Overdue", "Today", "Tomorrow", "Next7Days")


def _is_inbox(task: Task) -> bool:
    return not task.list or task.list == INBOX


def _membership(view: str, projects: Iterable[str], today: str):
    """Return the predicate deciding whether a task belongs to *view*."""
    if view == VIEW_COMPLETED:
        return lambda t: t.completed
    if view == VIEW_NEXT_7_DAYS:
        return lambda t: not t.completed and is_within_next_days(t.due_date, HORIZON_DAYS, today)
    if view == VIEW_TODAY:
        return lambda t: not t.completed and t.due_date == today
    if view == VIEW_INBOX:
        return lambda t: not t.completed and _is_inbox(t)
    if view in set(projects):
        return lambda t: not t.completed and t.list == view
    return lambda t: not t.completed


def sort_key(task: Task) -> tuple:
    return (
        task.completed,
        -task.priority.score,
        task.due_date is None,
        task.due_date or "",
        -task.created_at,
    )


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Incomplete first, then priority, then due date, then newest.

    ``sorted`` is stable, so full ties keep their input order.
    """
    return sorted(tasks, key=sort_key)


def filter_tasks(
    tasks: Iterable[Task],
    view: str,
    projects: Iterable[str] = (),
    today: DateLike | None = None,
) -> list[Task]:
    """Filter and sort tasks for a view id or a project name.

    Unknown views (including ``all`` and ``focus``) show every incomplete task.
    """
    member = _membership(view, projects, to_iso(resolve_today(today)))
    return sort_tasks(t for t in tasks if member(t))


def group_for_dashboard(tasks: Iterable[Task], today: DateLike | None = None) -> dict[str, list[Task]]:
    """Partition an already sorted list into due-date buckets, keeping order."""
    today_str = to_iso(resolve_today(today))
    tomorrow_str = add_days(today_str, 1)

    groups: dict[str, list[Task]] = {bucket: [] for bucket in DASHBOARD_BUCKETS}
    for task in tasks:
        if task.due_date and task.due_date < today_str:
            groups["Overdue"].append(task)
        elif task.due_date == today_str:
            groups["Today"].append(task)
        elif task.due_date == tomorrow_str:
            groups["Tomorrow"].append(task)
        else:
            groups["Next7Days"].append(task)
    return groups


def counts_by_view(
    tasks: Iterable[Task],
    projects: Iterable[str] = (),
    today: DateLike | None = None,
) -> dict[str, int]:
    """Incomplete-task counts for the sidebar: inbox, today, next7days, projects."""
    today_str = to_iso(resolve_today(today))
    projects = list(projects)
    tasks = list(tasks)

    counts: dict[str, int] = {}
    for view in [VIEW_INBOX, VIEW_TODAY, VIEW_NEXT_7_DAYS, *projects]:
        member = _membership(view, projects, today_str)
        counts[view] = sum(1 for t in tasks if not t.completed and member(t))
    return counts


def completion_log(tasks: Iterable[Task]) -> list[Task]:
    """Completed tasks as a commit history, most recently completed first."""
    done = [t for t in tasks if t.completed]
    return sorted(done, key=lambda t: t.completed_at or 0, reverse=True)


def search_tasks(tasks: Iterable[Task], query: str) -> list[Task]:
    """Case-insensitive match on title or any tag. A blank query matches nothing."""
    keyword = (query or "").strip().lower()
    if not keyword:
        return []
    return [
        t for t in tasks
        if keyword in t.title.lower() or any(keyword in tag.lower() for tag in t.tags)
    ]


def view_breadcrumb(view: str) -> str:
    """Path-style label shown in the status line for a view."""
    return {
        VIEW_NEXT_7_DAYS: "~/dashboard",
        VIEW_TODAY: "~/plan/today",
        VIEW_COMPLETED: "~/repository/history",
        VIEW_INBOX: "~/inbox",
        VIEW_FOCUS: "~/terminal/focus",
    }.get(view, f"~/projects/{view.lower()}")
