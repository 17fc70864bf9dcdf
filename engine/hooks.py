"""Shell hooks: how Gitick announces events to the outside world.

The engine never plays sounds or shows notifications itself. Instead,
hooks.yaml in the workspace maps an event to shell commands:

    on_timer_complete:
      - paplay ~/sounds/bell.oga
      - command: notify-send "Gitick" "Session over"
        timeout: 5

Each command receives the event context as JSON on stdin, plus
GITICK_HOOK_POINT and GITICK_ROOT in its environment.

Hook points:
- on_task_complete: a task was toggled to completed
- on_timer_start: a countdown started from idle
- on_timer_complete: a session ended and the timer rolled over
- on_tasks_imported: an import replaced the task list
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Iterator

from engine.fileio import read_yaml
from engine.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = {
    "on_task_complete",
    "on_timer_start",
    "on_timer_complete",
    "on_tasks_imported",
}

DEFAULT_TIMEOUT = 30
OUTPUT_LIMIT = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    return read_yaml(hooks_config_path(root))


def _commands(entries: Any) -> Iterator[tuple[str, float]]:
    """(command, timeout) pairs from a hook point's list; junk entries are skipped."""
    if not isinstance(entries, list):
        return
    for entry in entries:
        if isinstance(entry, str):
            command, timeout = entry, DEFAULT_TIMEOUT
        elif isinstance(entry, dict):
            command, timeout = entry.get("command", ""), entry.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue
        if command:
            yield str(command), timeout


def _run_one(command: str, timeout: float, payload: str, env: dict[str, str], root: Path) -> dict[str, Any]:
    try:
        proc = subprocess.run(
            command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(root),
            env=env,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Hook %r timed out after %ss", command, timeout)
        return {"exit_code": -1, "error": f"Hook timed out after {timeout}s"}
    except OSError as e:
        logger.warning("Hook %r failed: %s", command, e)
        return {"exit_code": -1, "error": str(e)}

    if proc.returncode != 0:
        logger.warning("Hook %r exited with %d", command, proc.returncode)
    return {
        "exit_code": proc.returncode,
        "stdout": proc.stdout[:OUTPUT_LIMIT],
        "stderr": proc.stderr[:OUTPUT_LIMIT],
    }


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run every command registered for *hook_point*, in order.

    Returns one result dict per command with exit_code and captured output
    (or an error message). Unknown hook points run nothing.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []
    if root is None:
        root = workspace_root()

    commands = list(_commands(load_hooks_config(root).get(hook_point)))
    if not commands:
        return []

    payload = json.dumps({"hook_point": hook_point, **context}, ensure_ascii=False)
    env = {**os.environ, "GITICK_HOOK_POINT": hook_point, "GITICK_ROOT": str(root)}
    logger.debug("Running %d hook(s) for %s", len(commands), hook_point)

    return [
        {"command": command, "hook_point": hook_point, **_run_one(command, timeout, payload, env, root)}
        for command, timeout in commands
    ]
