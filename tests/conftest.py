"""Shared test fixtures for Gitick tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

TODAY = "2026-10-19"  # a Monday


def ts(day: str, hour: int = 12) -> float:
    """Epoch ms for noon UTC (by default) on an ISO day."""
    d = datetime.fromisoformat(day).replace(hour=hour, tzinfo=timezone.utc)
    return d.timestamp() * 1000


class FakeClock:
    """Injectable wall clock in epoch milliseconds."""

    def __init__(self, now: float = 1_800_000_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds * 1000


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and a small task store."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "focus_minutes": 25,
        "break_minutes": 5,
        "heatmap_weeks": 4,
        "projects": ["Work", "Study", "Life"],
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    store = {
        "projects": ["Work", "Study", "Life", "Garden"],
        "tasks": [
            {
                "id": "t-report",
                "title": "Finish report",
                "completed": False,
                "priority": "high",
                "dueDate": "2026-10-19",
                "tags": ["work"],
                "list": "Work",
                "subtasks": [{"id": "s-1", "title": "Outline", "completed": True}],
                "createdAt": ts("2026-10-10"),
            },
            {
                "id": "t-seeds",
                "title": "Order seeds",
                "completed": False,
                "priority": "low",
                "tags": ["garden"],
                "list": "Garden",
                "subtasks": [],
                "createdAt": ts("2026-10-11"),
            },
            {
                "id": "t-milk",
                "title": "Buy milk",
                "completed": True,
                "completedAt": ts("2026-10-18"),
                "priority": "medium",
                "tags": [],
                "list": "Inbox",
                "subtasks": [],
                "createdAt": ts("2026-10-12"),
            },
        ],
    }
    (root / "tasks.json").write_text(json.dumps(store, indent=2), encoding="utf-8")

    os.environ["GITICK_ROOT"] = str(root)
    yield root
    if "GITICK_ROOT" in os.environ:
        del os.environ["GITICK_ROOT"]
