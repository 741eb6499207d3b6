"""
Data models for StudyPlanner.

Plain dataclasses for the records the app keeps: tasks and the rolling
statistics snapshot. They mirror the JSON export format field for field so
storage, export and import all speak the same "language."
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

PRIORITIES = ("high", "medium", "low")
PRIORITY_WEIGHT = {"high": 3, "medium": 2, "low": 1}
DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "General"
PLACEHOLDER_TEXT = "Untitled task"
MIN_POMODORO_TARGET = 1
MAX_POMODORO_TARGET = 20


@dataclass
class Task:
    """One entry in the task list."""
    id: str = ""
    text: str = ""
    category: str = DEFAULT_CATEGORY
    priority: str = DEFAULT_PRIORITY
    deadline: str = ""       # 'YYYY-MM-DD' or ''
    completed: bool = False
    created_at: str = ""     # ISO-8601
    completed_at: str = ""   # ISO-8601, '' while not completed
    pomodoro_count: int = 0
    pomodoro_target: int = MIN_POMODORO_TARGET

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "priority": self.priority,
            "deadline": self.deadline,
            "completed": self.completed,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
            "pomodoroCount": self.pomodoro_count,
            "pomodoroTarget": self.pomodoro_target,
        }


@dataclass
class StatsCounters:
    """A pair of counters tracked per period."""
    completed_tasks: int = 0
    pomodoros: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"completedTasks": self.completed_tasks, "pomodoros": self.pomodoros}

    def copy(self) -> "StatsCounters":
        return StatsCounters(self.completed_tasks, self.pomodoros)


@dataclass
class StatsSnapshot:
    """
    Day / week / lifetime counters.

    `daily` belongs to the day named by `last_date`, `weekly` to the ISO week
    named by `last_week_key`. Both markers are empty on a fresh install.
    """
    last_date: str = ""
    last_week_key: str = ""
    daily: StatsCounters = field(default_factory=StatsCounters)
    weekly: StatsCounters = field(default_factory=StatsCounters)
    total: StatsCounters = field(default_factory=StatsCounters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastDate": self.last_date,
            "lastWeekKey": self.last_week_key,
            "daily": self.daily.to_dict(),
            "weekly": self.weekly.to_dict(),
            "total": self.total.to_dict(),
        }

    def copy(self) -> "StatsSnapshot":
        return StatsSnapshot(
            last_date=self.last_date,
            last_week_key=self.last_week_key,
            daily=self.daily.copy(),
            weekly=self.weekly.copy(),
            total=self.total.copy(),
        )


# ── Normalization (storage + import share these rules) ─────────────────────

def new_task_id() -> str:
    return str(uuid.uuid4())


def clamp_target(value: Any) -> int:
    try:
        target = int(value)
    except (TypeError, ValueError):
        return MIN_POMODORO_TARGET
    return max(MIN_POMODORO_TARGET, min(target, MAX_POMODORO_TARGET))


def _non_negative_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_task(raw: Dict[str, Any]) -> Task:
    """Build a Task from a loosely-typed dict (sqlite row or import record)."""
    text = _as_str(raw.get("text")) or PLACEHOLDER_TEXT
    priority = raw.get("priority")
    if priority not in PRIORITIES:
        priority = DEFAULT_PRIORITY
    completed = bool(raw.get("completed"))
    return Task(
        id=_as_str(raw.get("id")) or new_task_id(),
        text=text,
        category=_as_str(raw.get("category")) or DEFAULT_CATEGORY,
        priority=priority,
        deadline=_as_str(raw.get("deadline")),
        completed=completed,
        created_at=_as_str(raw.get("createdAt")) or datetime.now().isoformat(),
        completed_at=_as_str(raw.get("completedAt")) if completed else "",
        pomodoro_count=_non_negative_int(raw.get("pomodoroCount")),
        pomodoro_target=clamp_target(raw.get("pomodoroTarget", MIN_POMODORO_TARGET)),
    )


def normalize_counters(raw: Any) -> StatsCounters:
    if not isinstance(raw, dict):
        return StatsCounters()
    return StatsCounters(
        completed_tasks=_non_negative_int(raw.get("completedTasks")),
        pomodoros=_non_negative_int(raw.get("pomodoros")),
    )


def normalize_stats(raw: Any) -> StatsSnapshot:
    if not isinstance(raw, dict):
        return StatsSnapshot()
    return StatsSnapshot(
        last_date=_as_str(raw.get("lastDate")),
        last_week_key=_as_str(raw.get("lastWeekKey")),
        daily=normalize_counters(raw.get("daily")),
        weekly=normalize_counters(raw.get("weekly")),
        total=normalize_counters(raw.get("total")),
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a naive local datetime, or None."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Defines Task, StatsCounters and StatsSnapshot, plus the normalization
#   helpers used whenever a record enters the app from outside (sqlite rows
#   on startup, JSON records on import).
#
# Key rules applied by normalize_task():
#   - unknown priority becomes 'medium', missing category becomes 'General'
#   - blank text becomes 'Untitled task'
#   - pomodoroTarget is clamped to [1, 20], counters never go negative
#   - completedAt is dropped for tasks that are not completed
#
# Data flow:
#   Repository row / import JSON → normalize_task() → Task → TaskStore
#   Task.to_dict() → Repository / export JSON
#
# Interviewer-friendly talking points:
#   1. One normalizer for both storage and import means an exported file and
#      the local database can never disagree on what a "valid" task is.
#   2. Timestamps stay as ISO strings on the model; parse_timestamp() turns
#      them into local naive datetimes only where calendar math needs it.
