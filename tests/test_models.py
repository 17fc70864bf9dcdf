"""Tests for engine/models.py — dataclass serialization round-trips."""

from engine.models import (
    DEFAULT_PROJECTS,
    INBOX,
    Priority,
    Settings,
    Subtask,
    Task,
    TaskStore,
)


def test_priority_parse():
    assert Priority.parse("high") is Priority.HIGH
    assert Priority.parse(" Low ") is Priority.LOW
    assert Priority.parse(Priority.MEDIUM) is Priority.MEDIUM
    assert Priority.parse("urgent") is None
    assert Priority.parse(None, Priority.MEDIUM) is Priority.MEDIUM


def test_priority_scores_order():
    assert Priority.HIGH.score > Priority.MEDIUM.score > Priority.LOW.score


def test_task_from_dict():
    data = {
        "id": "t1",
        "title": "Write tests",
        "completed": True,
        "completedAt": 1000,
        "priority": "high",
        "dueDate": "2026-10-19",
        "tags": ["dev"],
        "list": "Work",
        "subtasks": [{"id": "s1", "title": "unit", "completed": True}],
        "createdAt": 500,
    }
    task = Task.from_dict(data)
    assert task.priority is Priority.HIGH
    assert task.completed_at == 1000
    assert task.due_date == "2026-10-19"
    assert task.project == "Work"
    assert task.subtasks == [Subtask("s1", "unit", True)]
    assert task.created_at == 500


def test_task_defaults():
    task = Task.from_dict({"id": "x", "title": "Bare"})
    assert task.priority is Priority.MEDIUM
    assert task.list == INBOX
    assert task.tags == []
    assert task.subtasks == []
    assert task.due_date is None


def test_task_to_dict_omits_unset_optionals():
    d = Task(id="x", title="Open").to_dict()
    assert "completedAt" not in d
    assert "dueDate" not in d
    assert d["priority"] == "medium"
    assert d["list"] == INBOX


def test_task_roundtrip():
    original = Task(
        id="r",
        title="Round trip",
        description="body",
        completed=True,
        completed_at=42,
        priority=Priority.LOW,
        due_date="2026-11-01",
        tags=["a", "b"],
        subtasks=[Subtask("s", "sub")],
        list="Study",
        created_at=7,
    )
    assert Task.from_dict(original.to_dict()) == original


def test_normalize_completion():
    task = Task(id="a", title="a", completed=True)
    task.normalize_completion(99)
    assert task.completed_at == 99

    task.completed = False
    task.normalize_completion(100)
    assert task.completed_at is None


def test_blank_list_reads_as_inbox():
    assert Task(id="a", title="a", list="").project == INBOX


def test_task_store_roundtrip():
    store = TaskStore(projects=["Work", "Garden"], tasks=[Task(id="a", title="A")])
    restored = TaskStore.from_dict(store.to_dict())
    assert restored.projects == ["Work", "Garden"]
    assert [t.id for t in restored.tasks] == ["a"]


def test_task_store_from_empty():
    store = TaskStore.from_dict({})
    assert store.projects == DEFAULT_PROJECTS
    assert store.tasks == []


def test_settings_from_dict():
    s = Settings.from_dict({"timezone": "Europe/Berlin", "focus_minutes": 50, "projects": ["Home"]})
    assert s.timezone == "Europe/Berlin"
    assert s.focus_minutes == 50
    assert s.break_minutes == 5
    assert s.heatmap_weeks == 36
    assert s.projects == ["Home"]


def test_settings_roundtrip():
    s = Settings(timezone="Asia/Tokyo", focus_minutes=45, break_minutes=15, heatmap_weeks=12)
    assert Settings.from_dict(s.to_dict()) == s
