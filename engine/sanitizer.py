"""Repair and validation of externally supplied task lists.

This is the persistence boundary: records loaded from disk or imported from a
file pass through here before any view or heatmap sees them.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any

from engine.dates import is_iso_date, system_clock
from engine.models import INBOX, Priority, Subtask, Task

logger = logging.getLogger(__name__)


class InvalidFormatError(ValueError):
    """The top-level value is not a list of task records."""


def create_id() -> str:
    return str(uuid.uuid4())


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _non_blank(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_subtasks(value: Any) -> list[Subtask]:
    if not isinstance(value, list):
        return []
    out = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        title = _non_blank(raw.get("title"))
        if not title:
            continue
        sub_id = raw.get("id") if _non_blank(raw.get("id")) else create_id()
        out.append(Subtask(id=sub_id, title=title, completed=bool(raw.get("completed"))))
    return out


def normalize_tags(value: Any) -> list[str]:
    """Trimmed string tags, duplicates dropped case-insensitively."""
    if not isinstance(value, list):
        return []
    seen: set[str] = set()
    tags = []
    for raw in value:
        tag = _non_blank(raw)
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        tags.append(tag)
    return tags


def normalize_task(raw: Any, now_ms: float | None = None) -> Task | None:
    """Build a well-formed Task from one record, or None if it has no title."""
    if not isinstance(raw, dict):
        return None
    title = _non_blank(raw.get("title"))
    if not title:
        return None

    if now_ms is None:
        now_ms = system_clock()

    created_at = raw.get("createdAt")
    completed_at = raw.get("completedAt")
    due_date = raw.get("dueDate")
    description = raw.get("description")

    task = Task(
        id=raw["id"] if _non_blank(raw.get("id")) else create_id(),
        title=title,
        description=description if isinstance(description, str) else "",
        completed=bool(raw.get("completed")),
        completed_at=completed_at if is_finite_number(completed_at) else None,
        priority=Priority.parse(raw.get("priority"), Priority.MEDIUM),
        due_date=due_date if is_iso_date(due_date) else None,
        tags=normalize_tags(raw.get("tags")),
        subtasks=normalize_subtasks(raw.get("subtasks")),
        list=_non_blank(raw.get("list")) or INBOX,
        created_at=created_at if is_finite_number(created_at) else now_ms,
    )
    task.normalize_completion(now_ms)
    return task


def sanitize_task_list(value: Any, now_ms: float | None = None) -> list[Task]:
    """Normalize every record; drop untitled ones and rekey duplicate ids.

    Raises InvalidFormatError if *value* is not a list.
    """
    if not isinstance(value, list):
        raise InvalidFormatError("Invalid format: expected an array of tasks")

    seen_ids: set[str] = set()
    tasks = []
    dropped = rekeyed = 0
    for raw in value:
        task = normalize_task(raw, now_ms)
        if task is None:
            dropped += 1
            continue
        if task.id in seen_ids:
            task.id = create_id()
            rekeyed += 1
        seen_ids.add(task.id)
        tasks.append(task)

    if dropped or rekeyed:
        logger.warning(
            "Sanitized task list: %d malformed record(s) dropped, %d duplicate id(s) rekeyed",
            dropped,
            rekeyed,
        )
    return tasks
