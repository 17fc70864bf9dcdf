"""Gitick task engine — parsing, views, heatmap and focus timer.

Public API re-exports for convenient imports:
    from engine import parse_command, filter_tasks, build_heatmap, FocusTimer, ...
"""

# Workspace & paths
from engine.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    today_str,
    settings_path,
    tasks_path,
    timer_path,
    hooks_config_path,
    log_dir,
)

# File I/O
from engine.fileio import (
    read_text,
    read_json,
    read_yaml,
    atomic_open,
    write_json_atomic,
    file_lock,
    quarantine,
)

# Dates
from engine.dates import (
    Clock,
    system_clock,
    is_iso_date,
    local_date,
    today_iso,
    add_days,
    next_monday,
    is_within_next_days,
    format_for_display,
)

# Models
from engine.models import (
    INBOX,
    DEFAULT_PROJECTS,
    Priority,
    Subtask,
    Task,
    TaskStore,
    Settings,
)

# Parsing
from engine.parser import ParsedCommand, parse_command

# Views
from engine.views import (
    DASHBOARD_BUCKETS,
    filter_tasks,
    sort_tasks,
    group_for_dashboard,
    counts_by_view,
    search_tasks,
    completion_log,
    view_breadcrumb,
)

# Heatmap & streaks
from engine.contributions import (
    Streaks,
    WindowStats,
    CalendarDay,
    Heatmap,
    build_completion_map,
    streaks,
    visible_window_stats,
    intensity_level,
    window_start_for,
    build_calendar_grid,
    build_heatmap,
)

# Focus timer
from engine.timer import (
    TimerMode,
    Idle,
    Running,
    TimerTick,
    FocusTimer,
    load_timer,
    save_timer,
)

# Sanitizer
from engine.sanitizer import (
    InvalidFormatError,
    normalize_task,
    sanitize_task_list,
)

# Tasks
from engine.tasks import (
    create_onboarding_tasks,
    load_store,
    save_store,
    validate_task,
    find_task,
    add_task_from_input,
    toggle_task,
    update_task,
    delete_task,
    restore_task,
    add_subtask,
    toggle_subtask,
    delete_subtask,
    add_project,
    delete_project,
    restore_project,
    import_tasks,
    export_tasks,
)

# Hooks
from engine.hooks import run_hooks, load_hooks_config
