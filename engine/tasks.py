"""Task CRUD, validation, lifecycle and project management for Gitick."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from engine.dates import DateLike, is_iso_date, resolve_today, system_clock, to_iso
from engine.fileio import quarantine, read_json, write_json_atomic
from engine.models import DEFAULT_PROJECTS, INBOX, Priority, Subtask, Task, TaskStore
from engine.parser import parse_command
from engine.sanitizer import (
    InvalidFormatError,
    create_id,
    is_finite_number,
    normalize_task,
    sanitize_task_list,
)
from engine.workspace import tasks_path as _tasks_path

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"id", "createdAt", "created_at"}


# ── Onboarding ────────────────────────────────────────────────


def create_onboarding_tasks(now_ms: float | None = None) -> list[Task]:
    """Starter tasks for a brand new workspace."""
    now = system_clock() if now_ms is None else now_ms
    return [
        Task(
            id="welcome-1",
            title="Welcome to Gitick! Start here.",
            description=(
                "Gitick is a minimalist, local-first task manager.\n\n"
                "Features:\n- Smart text parsing\n- Focus timer\n- Contribution heatmap"
            ),
            priority=Priority.HIGH,
            tags=["welcome", "guide"],
            subtasks=[
                Subtask(id="sub-1", title="Open this task to see details", completed=True),
                Subtask(id="sub-2", title="Try completing this subtask"),
            ],
            created_at=now,
        ),
        Task(
            id="welcome-2",
            title='Try Smart Parsing: type "!high #demo today"',
            description='Adding "Buy coffee !high #life today" sets the priority, tag and due date.',
            tags=["feature", "smart-syntax"],
            created_at=now - 1000,
        ),
        Task(
            id="welcome-3",
            title="Explore Focus Mode",
            description="Start a 25 minute focus timer from the focus view.",
            priority=Priority.LOW,
            tags=["productivity"],
            list="Study",
            created_at=now - 2000,
        ),
    ]


# ── Persistence ───────────────────────────────────────────────


def load_store(root: Path | None = None, now_ms: float | None = None) -> TaskStore:
    """Load tasks.json, sanitizing every record.

    A missing file starts a fresh store with the onboarding tasks. A corrupt
    one is moved aside as tasks.json.corrupt-<ms> and replaced the same way.
    """
    path = _tasks_path(root)
    if not path.exists():
        return TaskStore(tasks=create_onboarding_tasks(now_ms))
    try:
        data = read_json(path)
        if not isinstance(data, dict):
            raise InvalidFormatError("Invalid format: expected a task store object")
        tasks = sanitize_task_list(data.get("tasks", []), now_ms)
    except (json.JSONDecodeError, InvalidFormatError) as e:
        moved = quarantine(path, system_clock() if now_ms is None else now_ms)
        logger.error("Failed to read %s, starting over (kept as %s): %s", path, moved, e)
        return TaskStore(tasks=create_onboarding_tasks(now_ms))
    store = TaskStore.from_dict(data)
    store.tasks = tasks
    return store


def save_store(store: TaskStore, root: Path | None = None) -> None:
    """Save the store back to tasks.json atomically."""
    write_json_atomic(_tasks_path(root), store.to_dict())


# ── Validation ────────────────────────────────────────────────


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate a camelCase task record and return list of errors (empty if valid)."""
    errors = []
    if not str(task.get("title", "")).strip():
        errors.append("Missing required field: title")
    if "priority" in task and Priority.parse(task["priority"]) is None:
        errors.append(f"Invalid priority: {task['priority']}")
    if task.get("dueDate") and not is_iso_date(task["dueDate"]):
        errors.append(f"Invalid due date: {task['dueDate']}")
    if "tags" in task and not isinstance(task["tags"], list):
        errors.append("tags must be a list")
    if "subtasks" in task and not isinstance(task["subtasks"], list):
        errors.append("subtasks must be a list")
    if "completed" in task and not isinstance(task["completed"], bool):
        errors.append(f"completed must be true or false: {task['completed']!r}")
    if task.get("completedAt") is not None and not is_finite_number(task["completedAt"]):
        errors.append(f"Invalid completedAt timestamp: {task['completedAt']!r}")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def find_task(store: TaskStore, task_id: str) -> Task | None:
    for t in store.tasks:
        if t.id == task_id:
            return t
    return None


def add_task_from_input(
    store: TaskStore,
    text: str,
    active_project: str | None = None,
    today: DateLike | None = None,
    now_ms: float | None = None,
) -> Task | None:
    """Create a task from one line of quick-add input. Blank input is ignored.

    Missing fields fall back to: medium priority, due today, and the active
    project (or Inbox) when no ``@project`` resolved.
    """
    if not text or not text.strip():
        return None

    parsed = parse_command(text, store.projects, today)
    if parsed.resolved_project:
        project = parsed.resolved_project
    elif active_project in store.projects:
        project = active_project
    else:
        project = INBOX

    task = Task(
        id=create_id(),
        title=parsed.title_or(text),
        priority=parsed.priority or Priority.MEDIUM,
        due_date=parsed.due_date or to_iso(resolve_today(today)),
        tags=parsed.tags,
        list=project,
        created_at=system_clock() if now_ms is None else now_ms,
    )
    store.tasks.insert(0, task)
    return task


def toggle_task(store: TaskStore, task_id: str, now_ms: float | None = None) -> Task | None:
    task = find_task(store, task_id)
    if not task:
        return None
    task.completed = not task.completed
    task.completed_at = (system_clock() if now_ms is None else now_ms) if task.completed else None
    return task


def update_task(
    store: TaskStore,
    task_id: str,
    updates: dict[str, Any],
    now_ms: float | None = None,
) -> tuple[Task | None, list[str]]:
    """Update a task by ID from camelCase fields. Returns (updated_task, errors).

    The merged record is validated, then normalized the same way loaded and
    imported records are.
    """
    task = find_task(store, task_id)
    if not task:
        return None, [f"Task not found: {task_id}"]

    task_dict = task.to_dict()
    task_dict.update({k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS})
    if "completed" in updates and not updates["completed"]:
        task_dict.pop("completedAt", None)
    if "dueDate" in updates and not updates["dueDate"]:
        task_dict.pop("dueDate", None)

    errors = validate_task(task_dict)
    if errors:
        return None, errors

    updated = normalize_task(task_dict, system_clock() if now_ms is None else now_ms)
    updated.created_at = task.created_at
    for i, t in enumerate(store.tasks):
        if t.id == task_id:
            store.tasks[i] = updated
            break
    return updated, []


def delete_task(store: TaskStore, task_id: str) -> Task | None:
    """Remove a task. The removed record is returned so the caller can undo."""
    for i, t in enumerate(store.tasks):
        if t.id == task_id:
            return store.tasks.pop(i)
    return None


def restore_task(store: TaskStore, task: Task) -> Task:
    """Undo a deletion by putting the record back at the top."""
    if find_task(store, task.id):
        task.id = create_id()
    store.tasks.insert(0, task)
    return task


# ── Subtasks ──────────────────────────────────────────────────


def add_subtask(store: TaskStore, task_id: str, title: str) -> Subtask | None:
    task = find_task(store, task_id)
    title = (title or "").strip()
    if not task or not title:
        return None
    sub = Subtask(id=create_id(), title=title)
    task.subtasks.append(sub)
    return sub


def toggle_subtask(store: TaskStore, task_id: str, subtask_id: str) -> Subtask | None:
    task = find_task(store, task_id)
    if not task:
        return None
    for sub in task.subtasks:
        if sub.id == subtask_id:
            sub.completed = not sub.completed
            return sub
    return None


def delete_subtask(store: TaskStore, task_id: str, subtask_id: str) -> bool:
    task = find_task(store, task_id)
    if not task:
        return False
    before = len(task.subtasks)
    task.subtasks = [s for s in task.subtasks if s.id != subtask_id]
    return len(task.subtasks) < before


# ── Projects ──────────────────────────────────────────────────


def add_project(store: TaskStore, name: str) -> bool:
    """Add a project unless one with the same name (any casing) exists."""
    name = (name or "").strip()
    if not name or name.lower() == INBOX.lower():
        return False
    if any(p.lower() == name.lower() for p in store.projects):
        return False
    store.projects.append(name)
    return True


def delete_project(
    store: TaskStore,
    name: str,
    protected: list[str] | None = None,
) -> list[str] | None:
    """Delete a project and move its tasks to Inbox.

    Returns the moved task ids (for undo), or None when the project is
    protected or unknown.
    """
    protected = DEFAULT_PROJECTS if protected is None else protected
    if name in protected or name not in store.projects:
        return None
    store.projects = [p for p in store.projects if p != name]
    moved = []
    for t in store.tasks:
        if t.list == name:
            t.list = INBOX
            moved.append(t.id)
    return moved


def restore_project(store: TaskStore, name: str, moved_ids: list[str]) -> None:
    """Undo delete_project."""
    if name not in store.projects:
        store.projects.append(name)
    ids = set(moved_ids)
    for t in store.tasks:
        if t.id in ids:
            t.list = name


# ── Import / export ───────────────────────────────────────────


def import_tasks(
    store: TaskStore,
    raw: Any,
    now_ms: float | None = None,
    default_projects: list[str] | None = None,
) -> list[Task]:
    """Replace the task list with an imported one.

    Raises InvalidFormatError if *raw* is not a list. The default projects
    (DEFAULT_PROJECTS unless given) and those used by the imported tasks are
    merged into the known projects.
    """
    tasks = sanitize_task_list(raw, now_ms)
    defaults = DEFAULT_PROJECTS if default_projects is None else default_projects
    store.tasks = tasks
    merged = list(dict.fromkeys([*defaults, *store.projects, *(t.list for t in tasks)]))
    store.projects = [p for p in merged if p and p != INBOX]
    return tasks


def export_tasks(store: TaskStore) -> list[dict[str, Any]]:
    return [t.to_dict() for t in store.tasks]
