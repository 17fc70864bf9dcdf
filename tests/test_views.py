"""Tests for engine/views.py — filtering, sorting, grouping, counts, search."""

import pytest

from engine.models import Priority, Task
from engine.views import (
    DASHBOARD_BUCKETS,
    completion_log,
    counts_by_view,
    filter_tasks,
    group_for_dashboard,
    search_tasks,
    sort_tasks,
    view_breadcrumb,
)

TODAY = "2026-10-19"
PROJECTS = ["Work", "Garden"]


def make(id, **kw):
    kw.setdefault("title", id)
    kw.setdefault("created_at", 0)
    return Task(id=id, **kw)


@pytest.fixture
def tasks():
    return [
        make("overdue", due_date="2026-10-15", list="Work", created_at=1),
        make("today", due_date="2026-10-19", priority=Priority.HIGH, created_at=2),
        make("tomorrow", due_date="2026-10-20", list="Garden", created_at=3),
        make("in-week", due_date="2026-10-26", priority=Priority.LOW, created_at=4),
        make("far", due_date="2026-10-27", created_at=5),
        make("undated", list="", created_at=6),
        make("done", completed=True, completed_at=10, due_date="2026-10-19", created_at=7),
    ]


def ids(tasks):
    return [t.id for t in tasks]


def test_priority_order_without_dates():
    ts = [make("low", priority=Priority.LOW), make("high", priority=Priority.HIGH), make("med")]
    assert ids(sort_tasks(ts)) == ["high", "med", "low"]


def test_sort_rules():
    ts = [
        make("done-high", completed=True, completed_at=1, priority=Priority.HIGH),
        make("undated-new", created_at=50),
        make("dated-late", due_date="2026-11-01"),
        make("dated-early", due_date="2026-10-01"),
        make("undated-old", created_at=10),
    ]
    assert ids(sort_tasks(ts)) == [
        "dated-early", "dated-late", "undated-new", "undated-old", "done-high",
    ]


def test_sort_is_stable_on_full_ties():
    ts = [make(f"t{i}", due_date="2026-10-20", created_at=5) for i in range(5)]
    assert ids(sort_tasks(ts)) == ["t0", "t1", "t2", "t3", "t4"]


def test_completed_view(tasks):
    result = filter_tasks(tasks, "completed", PROJECTS, TODAY)
    assert ids(result) == ["done"]
    assert all(t.completed for t in result)


def test_today_view(tasks):
    assert ids(filter_tasks(tasks, "today", PROJECTS, TODAY)) == ["today"]


def test_next7days_view_requires_due_date_within_horizon(tasks):
    result = filter_tasks(tasks, "next7days", PROJECTS, TODAY)
    assert set(ids(result)) == {"overdue", "today", "tomorrow", "in-week"}
    assert ids(result)[0] == "today"  # high priority first


def test_inbox_view_includes_blank_list(tasks):
    result = filter_tasks(tasks, "inbox", PROJECTS, TODAY)
    assert set(ids(result)) == {"today", "in-week", "far", "undated"}


def test_project_view(tasks):
    assert ids(filter_tasks(tasks, "Garden", PROJECTS, TODAY)) == ["tomorrow"]


@pytest.mark.parametrize("view", ["all", "focus", "Unknown project"])
def test_other_views_show_all_incomplete(tasks, view):
    result = filter_tasks(tasks, view, PROJECTS, TODAY)
    assert len(result) == 6
    assert not any(t.completed for t in result)


def test_group_for_dashboard(tasks):
    upcoming = filter_tasks(tasks, "next7days", PROJECTS, TODAY)
    groups = group_for_dashboard(upcoming, TODAY)
    assert list(groups) == list(DASHBOARD_BUCKETS)
    assert ids(groups["Overdue"]) == ["overdue"]
    assert ids(groups["Today"]) == ["today"]
    assert ids(groups["Tomorrow"]) == ["tomorrow"]
    assert ids(groups["Next7Days"]) == ["in-week"]


def test_group_keeps_incoming_order():
    ts = [make("b", due_date="2026-10-10"), make("a", due_date="2026-10-12")]
    assert ids(group_for_dashboard(ts, TODAY)["Overdue"]) == ["b", "a"]


def test_undated_tasks_land_in_next7days_bucket():
    groups = group_for_dashboard([make("x")], TODAY)
    assert ids(groups["Next7Days"]) == ["x"]


def test_counts_match_filter_lengths(tasks):
    counts = counts_by_view(tasks, PROJECTS, TODAY)
    assert set(counts) == {"inbox", "today", "next7days", "Work", "Garden"}
    for view, count in counts.items():
        expected = [t for t in filter_tasks(tasks, view, PROJECTS, TODAY) if not t.completed]
        assert count == len(expected), view
    assert counts["next7days"] == 4
    assert counts["today"] == 1


def test_counts_with_unused_project():
    counts = counts_by_view([], ["Empty"], TODAY)
    assert counts == {"inbox": 0, "today": 0, "next7days": 0, "Empty": 0}


def test_search_matches_title_and_tags():
    ts = [
        make("a", title="Write Report"),
        make("b", title="Groceries", tags=["Errand"]),
        make("c", title="Nothing"),
    ]
    assert ids(search_tasks(ts, "report")) == ["a"]
    assert ids(search_tasks(ts, "ERR")) == ["b"]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_search_returns_nothing(tasks, query):
    assert search_tasks(tasks, query) == []


def test_breadcrumbs():
    assert view_breadcrumb("next7days") == "~/dashboard"
    assert view_breadcrumb("today") == "~/plan/today"
    assert view_breadcrumb("Garden") == "~/projects/garden"


def test_completion_log_newest_first():
    tasks = [
        make("old", completed=True, completed_at=100),
        make("open"),
        make("new", completed=True, completed_at=300),
        make("mid", completed=True, completed_at=200),
    ]
    assert ids(completion_log(tasks)) == ["new", "mid", "old"]


def test_next7days_view_skips_malformed_due_dates():
    assert filter_tasks([make("bad", due_date="soon")], "next7days", PROJECTS, TODAY) == []
