"""Drift-corrected focus/break countdown for Gitick.

The timer is either Idle (holding the seconds left) or Running (holding the
wall-clock instant it reaches zero). Remaining time while running is always
recomputed from that end instant, so late or dropped ticks never skew it.
Calls made in the wrong state are ignored rather than raising.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from engine.dates import Clock, system_clock
from engine.fileio import read_json, write_json_atomic
from engine.workspace import timer_path, workspace_root

logger = logging.getLogger(__name__)

FOCUS_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60
MIN_SECONDS = 60
MAX_SECONDS = 180 * 60


class TimerMode(Enum):
    FOCUS = "focus"
    BREAK = "break"

    @property
    def opposite(self) -> TimerMode:
        return TimerMode.BREAK if self is TimerMode.FOCUS else TimerMode.FOCUS


@dataclass(frozen=True)
class Idle:
    remaining: int | None = None


@dataclass(frozen=True)
class Running:
    end_timestamp: float


Phase = Union[Idle, Running]


@dataclass(frozen=True)
class TimerTick:
    mode: TimerMode
    remaining: int
    running: bool
    finished: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "remaining": self.remaining,
            "running": self.running,
            "finished": self.finished,
        }


class FocusTimer:
    def __init__(
        self,
        mode: TimerMode = TimerMode.FOCUS,
        clock: Clock | None = None,
        focus_seconds: int = FOCUS_SECONDS,
        break_seconds: int = BREAK_SECONDS,
        phase: Phase | None = None,
    ) -> None:
        self.mode = mode
        self.clock = clock or system_clock
        self.focus_seconds = focus_seconds
        self.break_seconds = break_seconds
        self.phase: Phase = phase if phase is not None else Idle(self.default_seconds(mode))

    def default_seconds(self, mode: TimerMode | None = None) -> int:
        mode = mode or self.mode
        return self.focus_seconds if mode is TimerMode.FOCUS else self.break_seconds

    @property
    def running(self) -> bool:
        return isinstance(self.phase, Running)

    @property
    def remaining(self) -> int:
        """Seconds left, derived from the end instant while running."""
        if isinstance(self.phase, Running):
            return max(0, self._seconds_until(self.phase.end_timestamp))
        if self.phase.remaining is None:
            return self.default_seconds()
        return self.phase.remaining

    def _seconds_until(self, end_timestamp: float) -> int:
        return math.ceil((end_timestamp - self.clock()) / 1000)

    # ── Transitions ───────────────────────────────────────────

    def start(self) -> None:
        if isinstance(self.phase, Running):
            return
        remaining = self.phase.remaining
        if not isinstance(remaining, int) or remaining <= 0:
            remaining = self.default_seconds()
        remaining = min(remaining, MAX_SECONDS)
        self.phase = Running(end_timestamp=self.clock() + remaining * 1000)
        logger.debug("timer started: %s, %ss", self.mode.value, remaining)

    def pause(self) -> None:
        if not isinstance(self.phase, Running):
            return
        remaining = max(0, self._seconds_until(self.phase.end_timestamp))
        self.phase = Idle(remaining)
        logger.debug("timer paused: %s, %ss left", self.mode.value, remaining)

    def reset(self) -> None:
        self.phase = Idle(self.default_seconds())

    def adjust(self, delta_minutes: int) -> None:
        """Nudge the idle duration; disabled while counting down."""
        if isinstance(self.phase, Running):
            return
        value = self.remaining + delta_minutes * 60
        self.phase = Idle(max(MIN_SECONDS, min(MAX_SECONDS, value)))

    def set_preset(self, minutes: int) -> None:
        if isinstance(self.phase, Running) or minutes <= 0:
            return
        self.phase = Idle(min(minutes * 60, MAX_SECONDS))

    def switch_mode(self, next_mode: TimerMode, auto_start: bool = False) -> None:
        self.mode = next_mode
        self.phase = Idle(self.default_seconds(next_mode))
        if auto_start:
            self.start()

    def tick(self) -> TimerTick:
        """Recompute the countdown from the clock.

        ``finished`` is set once a running countdown reaches zero; the caller
        delivers its side effects and then calls :meth:`complete_session`.
        """
        if isinstance(self.phase, Running):
            left = self._seconds_until(self.phase.end_timestamp)
            return TimerTick(self.mode, max(0, left), True, finished=left <= 0)
        return TimerTick(self.mode, self.remaining, False)

    def complete_session(self) -> TimerMode:
        """Roll over to the opposite mode and start it. Returns the finished mode."""
        finished = self.mode
        self.switch_mode(finished.opposite, auto_start=True)
        logger.info("%s session finished, now %s", finished.value, self.mode.value)
        return finished

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"mode": self.mode.value, "running": self.running}
        if isinstance(self.phase, Running):
            d["endTimestamp"] = self.phase.end_timestamp
        else:
            d["remaining"] = self.phase.remaining
        return d

    @classmethod
    def from_dict(
        cls,
        d: dict[str, Any],
        clock: Clock | None = None,
        focus_seconds: int = FOCUS_SECONDS,
        break_seconds: int = BREAK_SECONDS,
    ) -> FocusTimer:
        if not isinstance(d, dict):
            d = {}
        try:
            mode = TimerMode(d.get("mode", "focus"))
        except ValueError:
            mode = TimerMode.FOCUS
        phase: Phase | None = None
        end = d.get("endTimestamp")
        if d.get("running") and isinstance(end, (int, float)):
            phase = Running(float(end))
        elif isinstance(d.get("remaining"), int):
            phase = Idle(d["remaining"])
        return cls(mode, clock, focus_seconds, break_seconds, phase)


# ── Persistence ───────────────────────────────────────────────


def load_timer(
    root: Path | None = None,
    clock: Clock | None = None,
    focus_seconds: int = FOCUS_SECONDS,
    break_seconds: int = BREAK_SECONDS,
) -> FocusTimer:
    if root is None:
        root = workspace_root()
    path = timer_path(root)
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        data = {}
    return FocusTimer.from_dict(data, clock, focus_seconds, break_seconds)


def save_timer(timer: FocusTimer, root: Path | None = None) -> None:
    if root is None:
        root = workspace_root()
    write_json_atomic(timer_path(root), timer.to_dict())
