"""Tests for engine/workspace.py and engine/fileio.py — settings and paths."""

import fcntl
import logging
from zoneinfo import ZoneInfo

import pytest

from engine.fileio import (
    atomic_open,
    file_lock,
    lock_path,
    quarantine,
    read_json,
    read_yaml,
    write_json_atomic,
)
from engine.workspace import (
    get_user_timezone,
    load_settings,
    log_dir,
    tasks_path,
    workspace_root,
)


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()
    assert tasks_path() == workspace.resolve() / "tasks.json"


def test_load_settings(workspace):
    s = load_settings(workspace)
    assert s.timezone == "UTC"
    assert s.heatmap_weeks == 4
    assert s.projects == ["Work", "Study", "Life"]


def test_load_settings_missing_file(tmp_path):
    s = load_settings(tmp_path)
    assert s.focus_minutes == 25
    assert s.heatmap_weeks == 36


def test_load_settings_malformed(tmp_path, caplog):
    (tmp_path / "settings.yaml").write_text("focus_minutes: lots\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="engine.workspace"):
        s = load_settings(tmp_path)
    assert s.focus_minutes == 25
    assert "malformed" in caplog.text


def test_unknown_timezone_falls_back_to_utc(tmp_path):
    (tmp_path / "settings.yaml").write_text("timezone: Mars/Olympus\n", encoding="utf-8")
    assert get_user_timezone(tmp_path) == ZoneInfo("UTC")


def test_log_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("GITICK_LOG_DIR", raising=False)
    assert log_dir(tmp_path) == tmp_path / "logs"
    monkeypatch.setenv("GITICK_LOG_DIR", str(tmp_path / "elsewhere"))
    assert log_dir(tmp_path) == tmp_path / "elsewhere"


def test_atomic_json_write_leaves_no_temp_files(tmp_path):
    path = tmp_path / "nested" / "data.json"
    write_json_atomic(path, {"a": [1, 2]})
    assert read_json(path) == {"a": [1, 2]}
    assert [p.name for p in path.parent.iterdir()] == ["data.json"]


def test_file_lock_is_exclusive(tmp_path):
    path = tmp_path / "tasks.json"
    with file_lock(path):
        with open(lock_path(path), encoding="utf-8") as other:
            with pytest.raises(BlockingIOError):
                fcntl.flock(other.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    with open(lock_path(path), encoding="utf-8") as other:
        fcntl.flock(other.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        fcntl.flock(other.fileno(), fcntl.LOCK_UN)


def test_file_lock_survives_atomic_replace(tmp_path):
    path = tmp_path / "tasks.json"
    with file_lock(path):
        write_json_atomic(path, {"tasks": []})
        write_json_atomic(path, {"tasks": [1]})
    assert read_json(path) == {"tasks": [1]}
    assert sorted(p.name for p in tmp_path.iterdir()) == [".tasks.json.lock", "tasks.json"]


def test_read_missing_files(tmp_path):
    assert read_json(tmp_path / "none.json") == {}
    assert read_yaml(tmp_path / "none.yaml") == {}


def test_read_json_default_and_malformed(tmp_path):
    path = tmp_path / "timer.json"
    assert read_json(path, default=[]) == []
    path.write_text("{oops", encoding="utf-8")
    with pytest.raises(ValueError):
        read_json(path)


def test_failed_atomic_write_keeps_original(tmp_path):
    path = tmp_path / "tasks.json"
    write_json_atomic(path, {"tasks": []})
    with pytest.raises(RuntimeError):
        with atomic_open(path) as f:
            f.write("half written")
            raise RuntimeError("boom")
    assert read_json(path) == {"tasks": []}
    assert [p.name for p in tmp_path.iterdir()] == ["tasks.json"]


def test_quarantine(tmp_path):
    path = tmp_path / "tasks.json"
    assert quarantine(path, 5) is None
    path.write_text("garbage", encoding="utf-8")
    moved = quarantine(path, 1234.9)
    assert moved == tmp_path / "tasks.json.corrupt-1234"
    assert moved.read_text() == "garbage"
    assert not path.exists()
