"""Workspace root, settings, timezone and path helpers for Gitick."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from engine.fileio import read_yaml
from engine.models import Settings

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (holds settings.yaml and tasks.json)."""
    return Path(
        os.environ.get("GITICK_ROOT", str(Path.home() / "gitick"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> Settings:
    """Read settings.yaml, falling back to defaults for anything missing."""
    try:
        return Settings.from_dict(read_yaml(settings_path(root)))
    except (TypeError, ValueError, yaml.YAMLError) as e:
        logger.warning("Ignoring malformed settings.yaml: %s", e)
        return Settings()


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    tz = get_user_timezone(root)
    return datetime.now(tz).date().isoformat()


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def tasks_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tasks.json"


def timer_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "timer.json"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def log_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return Path(os.environ.get("GITICK_LOG_DIR", str(root / "logs")))
