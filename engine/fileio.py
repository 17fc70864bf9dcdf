"""Locked, atomic reads and writes for the workspace files.

Files Gitick writes (tasks.json, timer.json) are replaced whole: content goes
to a sibling temp file, is fsynced, and then renamed over the target. A
read-modify-write cycle holds file_lock() on the target for its duration so
concurrent requests cannot interleave.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import IO, Any, Iterator

import yaml


def read_text(path: Path) -> str:
    """Read a text file, returning empty string if missing."""
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def read_json(path: Path, default: Any = None) -> Any:
    """Parsed JSON, or *default* ({} when not given) for a missing or blank file.

    Malformed content raises json.JSONDecodeError; callers decide whether to
    quarantine the file or fail.
    """
    text = read_text(path)
    if not text.strip():
        return {} if default is None else default
    return json.loads(text)


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning empty dict if missing, empty or not a mapping."""
    text = read_text(path)
    if not text.strip():
        return {}
    result = yaml.safe_load(text)
    return result if isinstance(result, dict) else {}


@contextlib.contextmanager
def atomic_open(path: Path, suffix: str = ".tmp") -> Iterator[IO[str]]:
    """Yield a temp file that replaces *path* only if the block succeeds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp_name)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    with atomic_open(path, suffix=".json") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def lock_path(path: Path) -> Path:
    return path.with_name(f".{path.name}.lock")


@contextlib.contextmanager
def file_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive flock on the sidecar lock file of *path*.

    The lock file is never replaced, so every process locks the same inode.
    """
    lock = lock_path(path)
    lock.parent.mkdir(parents=True, exist_ok=True)
    with open(lock, "a", encoding="utf-8") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def quarantine(path: Path, stamp: int | float) -> Path | None:
    """Move an unreadable file aside as ``<name>.corrupt-<stamp>``.

    Returns the new location, or None if there was nothing to move.
    """
    if not path.exists():
        return None
    target = path.with_name(f"{path.name}.corrupt-{int(stamp)}")
    os.replace(path, target)
    return target
