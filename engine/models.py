"""Typed dataclasses for the Gitick data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

INBOX = "Inbox"
DEFAULT_PROJECTS = ["Work", "Study", "Life"]


# ── Primitives ────────────────────────────────────────────────


class Priority(Enum):
    """Task priority levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def score(self) -> int:
        return _PRIORITY_SCORE[self]

    @classmethod
    def parse(cls, value: Any, default: Priority | None = None) -> Priority | None:
        if isinstance(value, Priority):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return default


_PRIORITY_SCORE = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Subtask:
    id: str = ""
    title: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Subtask:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}


@dataclass
class Task:
    id: str = ""
    title: str = ""
    description: str = ""
    completed: bool = False
    completed_at: float | None = None  # epoch ms, set iff completed
    priority: Priority = Priority.MEDIUM
    due_date: str | None = None  # ISO date
    tags: list[str] = field(default_factory=list)
    subtasks: list[Subtask] = field(default_factory=list)
    list: str = INBOX  # project name
    created_at: float = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            description=str(d.get("description", "") or ""),
            completed=bool(d.get("completed", False)),
            completed_at=d.get("completedAt"),
            priority=Priority.parse(d.get("priority"), Priority.MEDIUM),
            due_date=d.get("dueDate") or None,
            tags=[str(t) for t in (d.get("tags") or [])],
            list=str(d.get("list") or INBOX),
            subtasks=[Subtask.from_dict(s) for s in (d.get("subtasks") or []) if isinstance(s, dict)],
            created_at=d.get("createdAt", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "list": self.list,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "createdAt": self.created_at,
        }
        if self.completed_at is not None:
            d["completedAt"] = self.completed_at
        if self.due_date:
            d["dueDate"] = self.due_date
        return d

    def normalize_completion(self, now_ms: float) -> None:
        """Keep completed_at present exactly when the task is completed."""
        if self.completed and self.completed_at is None:
            self.completed_at = now_ms
        elif not self.completed:
            self.completed_at = None

    @property
    def project(self) -> str:
        return self.list or INBOX


@dataclass
class TaskStore:
    projects: list[str] = field(default_factory=lambda: list(DEFAULT_PROJECTS))
    tasks: list[Task] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TaskStore:
        if not d or not isinstance(d, dict):
            return cls()
        projects = d.get("projects")
        return cls(
            projects=[str(p) for p in projects] if isinstance(projects, list) else list(DEFAULT_PROJECTS),
            tasks=[Task.from_dict(t) for t in (d.get("tasks") or []) if isinstance(t, dict)],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "projects": list(self.projects),
            "tasks": [t.to_dict() for t in self.tasks],
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    focus_minutes: int = 25
    break_minutes: int = 5
    heatmap_weeks: int = 36
    projects: list[str] = field(default_factory=lambda: list(DEFAULT_PROJECTS))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        projects = d.get("projects")
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            focus_minutes=int(d.get("focus_minutes", 25)),
            break_minutes=int(d.get("break_minutes", 5)),
            heatmap_weeks=int(d.get("heatmap_weeks", 36)),
            projects=[str(p) for p in projects] if isinstance(projects, list) else list(DEFAULT_PROJECTS),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "focus_minutes": self.focus_minutes,
            "break_minutes": self.break_minutes,
            "heatmap_weeks": self.heatmap_weeks,
            "projects": list(self.projects),
        }
