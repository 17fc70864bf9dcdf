from __future__ import annotations

import logging
import os
import secrets
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from engine import (
    FocusTimer,
    InvalidFormatError,
    TimerMode,
    add_project,
    add_subtask,
    add_task_from_input,
    build_heatmap,
    completion_log,
    counts_by_view,
    delete_project,
    delete_subtask,
    delete_task,
    export_tasks,
    file_lock,
    filter_tasks,
    find_task,
    format_for_display,
    get_user_timezone,
    group_for_dashboard,
    import_tasks,
    load_settings,
    load_store,
    load_timer,
    log_dir,
    normalize_task,
    parse_command,
    restore_task,
    run_hooks,
    save_store,
    save_timer,
    search_tasks,
    tasks_path,
    timer_path,
    today_str as _today_str,
    toggle_subtask,
    toggle_task,
    update_task as core_update_task,
    view_breadcrumb,
    workspace_root as _workspace_root,
)
from engine.logging_setup import setup_logging
from engine.models import Task
from engine.views import VIEW_ALL, VIEW_NEXT_7_DAYS

logger = logging.getLogger(__name__)

app = FastAPI(title="Gitick API", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("GITICK_USERNAME", "")
    expected_password = os.environ.get("GITICK_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def _dump(tasks: list[Task], today: str | None = None) -> list[dict[str, Any]]:
    """Task records plus a display label for the due date."""
    return [{**t.to_dict(), "dueLabel": format_for_display(t.due_date, today)} for t in tasks]


def _timer(root) -> FocusTimer:
    settings = load_settings(root)
    return load_timer(
        root,
        focus_seconds=settings.focus_minutes * 60,
        break_seconds=settings.break_minutes * 60,
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


# ── Parsing & views ───────────────────────────────────────────


@app.post("/api/parse")
def api_parse(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Preview what quick-add would extract from a line of input."""
    root = _workspace_root()
    store = load_store(root)
    parsed = parse_command(str(payload.get("text", "")), store.projects, _today_str(root))
    return parsed.to_dict()


@app.get("/api/tasks")
def api_list_tasks(
    view: str = VIEW_ALL,
    q: str | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Tasks for a view, or search results when ``q`` is given."""
    root = _workspace_root()
    store = load_store(root)
    today = _today_str(root)
    if q is not None:
        return {"query": q, "tasks": _dump(search_tasks(store.tasks, q), today)}
    tasks = filter_tasks(store.tasks, view, store.projects, today)
    return {"view": view, "breadcrumb": view_breadcrumb(view), "tasks": _dump(tasks, today)}


@app.get("/api/dashboard")
def api_dashboard(username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    store = load_store(root)
    today = _today_str(root)
    tasks = filter_tasks(store.tasks, VIEW_NEXT_7_DAYS, store.projects, today)
    groups = group_for_dashboard(tasks, today)
    return {bucket: _dump(items, today) for bucket, items in groups.items()}


@app.get("/api/history")
def api_history(limit: int | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Completed tasks, most recent first, like a commit log."""
    root = _workspace_root()
    log = completion_log(load_store(root).tasks)
    if limit is not None:
        log = log[:max(limit, 0)]
    return {"tasks": _dump(log, _today_str(root))}


@app.get("/api/counts")
def api_counts(username: str = Depends(get_current_user)) -> dict[str, int]:
    root = _workspace_root()
    store = load_store(root)
    return counts_by_view(store.tasks, store.projects, _today_str(root))


@app.get("/api/heatmap")
def api_heatmap(weeks: int | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    store = load_store(root)
    weeks = weeks or load_settings(root).heatmap_weeks
    heatmap = build_heatmap(store.tasks, weeks, _today_str(root), get_user_timezone(root))
    return heatmap.to_dict()


# ── Tasks ─────────────────────────────────────────────────────
# Every handler that saves holds the tasks.json lock from load to save.


@app.post("/api/tasks")
def api_create_task(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Quick-add a task from free text."""
    root = _workspace_root()
    today = _today_str(root)
    with file_lock(tasks_path(root)):
        store = load_store(root)
        task = add_task_from_input(store, str(payload.get("text", "")), payload.get("project"), today)
        if task is None:
            raise HTTPException(status_code=400, detail="Task text is empty")
        save_store(store, root)
    return {"ok": True, "task": _dump([task], today)[0]}


@app.put("/api/tasks/{task_id}")
def api_update_task(task_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        if not find_task(store, task_id):
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        updated, errors = core_update_task(store, task_id, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_store(store, root)
    return {"ok": True, "task": _dump([updated], _today_str(root))[0]}


@app.post("/api/tasks/{task_id}/toggle")
def api_toggle_task(task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        task = toggle_task(store, task_id)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        save_store(store, root)
    if task.completed:
        run_hooks("on_task_complete", {"task": task.to_dict()}, root)
    return {"ok": True, "task": _dump([task], _today_str(root))[0]}


@app.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Delete a task; the removed record is returned for undo."""
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        removed = delete_task(store, task_id)
        if removed is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        save_store(store, root)
    return {"ok": True, "removed": removed.to_dict()}


@app.post("/api/tasks/restore")
def api_restore_task(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    restored = normalize_task(payload)
    if restored is None:
        raise HTTPException(status_code=400, detail="Invalid task record")
    with file_lock(tasks_path(root)):
        store = load_store(root)
        task = restore_task(store, restored)
        save_store(store, root)
    return {"ok": True, "task": _dump([task], _today_str(root))[0]}


@app.post("/api/tasks/{task_id}/subtasks")
def api_add_subtask(task_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        sub = add_subtask(store, task_id, str(payload.get("title", "")))
        if sub is None:
            raise HTTPException(status_code=400, detail="Unknown task or empty subtask title")
        save_store(store, root)
    return {"ok": True, "subtask": sub.to_dict()}


@app.post("/api/tasks/{task_id}/subtasks/{subtask_id}/toggle")
def api_toggle_subtask(task_id: str, subtask_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        sub = toggle_subtask(store, task_id, subtask_id)
        if sub is None:
            raise HTTPException(status_code=404, detail=f"Subtask not found: {subtask_id}")
        save_store(store, root)
    return {"ok": True, "subtask": sub.to_dict()}


@app.delete("/api/tasks/{task_id}/subtasks/{subtask_id}")
def api_delete_subtask(task_id: str, subtask_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        if not delete_subtask(store, task_id, subtask_id):
            raise HTTPException(status_code=404, detail=f"Subtask not found: {subtask_id}")
        save_store(store, root)
    return {"ok": True}


# ── Projects ──────────────────────────────────────────────────


@app.get("/api/projects")
def api_list_projects(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"projects": load_store(_workspace_root()).projects}


@app.post("/api/projects")
def api_add_project(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    name = str(payload.get("name", "")).strip()
    with file_lock(tasks_path(root)):
        store = load_store(root)
        if not add_project(store, name):
            raise HTTPException(status_code=409, detail=f'Project "{name}" already exists')
        save_store(store, root)
    return {"ok": True, "projects": store.projects}


@app.delete("/api/projects/{name}")
def api_delete_project(name: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    protected = load_settings(root).projects
    with file_lock(tasks_path(root)):
        store = load_store(root)
        moved = delete_project(store, name, protected)
        if moved is None:
            raise HTTPException(status_code=400, detail=f'Cannot delete project "{name}"')
        save_store(store, root)
    return {"ok": True, "moved": moved}


# ── Import / export ───────────────────────────────────────────


@app.post("/api/import")
def api_import(payload: Any = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    defaults = load_settings(root).projects
    with file_lock(tasks_path(root)):
        store = load_store(root)
        try:
            tasks = import_tasks(store, payload, default_projects=defaults)
        except InvalidFormatError as e:
            raise HTTPException(status_code=400, detail=str(e))
        save_store(store, root)
    run_hooks("on_tasks_imported", {"count": len(tasks)}, root)
    return {"ok": True, "imported": len(tasks), "projects": store.projects}


@app.get("/api/export")
def api_export(username: str = Depends(get_current_user)) -> list[dict[str, Any]]:
    return export_tasks(load_store(_workspace_root()))


# ── Focus timer ───────────────────────────────────────────────


@app.get("/api/timer")
def api_timer(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Current countdown. Rolls over to the next mode once a session ends."""
    root = _workspace_root()
    with file_lock(timer_path(root)):
        timer = _timer(root)
        tick = timer.tick()
        if not tick.finished:
            return {"timer": tick.to_dict(), "finished": None}
        finished = timer.complete_session()
        save_timer(timer, root)
    run_hooks("on_timer_complete", {"finished": finished.value, "mode": timer.mode.value}, root)
    return {"timer": timer.tick().to_dict(), "finished": finished.value}


@app.post("/api/timer/{action}")
def api_timer_action(
    action: str,
    payload: dict[str, Any] = Body(default={}),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """start, pause, reset, adjust {minutes}, preset {minutes}, mode {mode, autoStart}."""
    root = _workspace_root()
    started = False
    with file_lock(timer_path(root)):
        timer = _timer(root)
        try:
            if action == "start":
                started = not timer.running
                timer.start()
            elif action == "pause":
                timer.pause()
            elif action == "reset":
                timer.reset()
            elif action == "adjust":
                timer.adjust(int(payload.get("minutes", 0)))
            elif action == "preset":
                timer.set_preset(int(payload.get("minutes", 0)))
            elif action == "mode":
                timer.switch_mode(TimerMode(payload.get("mode", "focus")), bool(payload.get("autoStart", False)))
            else:
                raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")
        except (TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        save_timer(timer, root)
    if started:
        run_hooks("on_timer_start", {"mode": timer.mode.value, "remaining": timer.remaining}, root)
    return {"ok": True, "timer": timer.tick().to_dict()}


def main() -> None:
    import uvicorn

    root = _workspace_root()
    setup_logging(log_dir=log_dir(root))
    logger.info("Serving workspace %s", root)
    uvicorn.run(
        app,
        host=os.environ.get("GITICK_HOST", "127.0.0.1"),
        port=int(os.environ.get("GITICK_PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
