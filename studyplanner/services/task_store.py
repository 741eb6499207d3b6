"""
Task Store — the ordered task list and everything the list view needs.

Tasks live in memory; every mutation is written through the Repository.
A failing write is logged and the in-memory list stays authoritative, so the
app keeps working when the database is unavailable.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from studyplanner.data.models import (
    DEFAULT_CATEGORY, DEFAULT_PRIORITY, PRIORITIES, PRIORITY_WEIGHT,
    Task, clamp_target, new_task_id,
)
from studyplanner.data.repository import Repository

logger = logging.getLogger(__name__)

FILTERS = ("all", "active", "completed")
_EDITABLE = {"text", "category", "priority", "deadline", "pomodoro_target"}


def _parse_deadline(value: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def is_overdue(task: Task, today: date) -> bool:
    deadline = _parse_deadline(task.deadline)
    return not task.completed and deadline is not None and deadline < today


def is_due_today(task: Task, today: date) -> bool:
    deadline = _parse_deadline(task.deadline)
    return not task.completed and deadline is not None and deadline == today


def _sort_key(task: Task):
    deadline = _parse_deadline(task.deadline)
    return (
        deadline is None,
        deadline or date.max,
        -PRIORITY_WEIGHT.get(task.priority, PRIORITY_WEIGHT[DEFAULT_PRIORITY]),
        task.created_at,
    )


class TaskStore:
    """Ordered collection of Task records."""

    def __init__(
        self,
        repo: Optional[Repository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.tasks: List[Task] = []

        # Listeners (TimerEngine binding cleanup, UI refresh)
        self.on_task_deleted: List[Callable[[str], None]] = []
        self.on_tasks_bulk_replaced: List[Callable[[List[str]], None]] = []

    # ── Loading ─────────────────────────────────────────────────────────────

    def load(self) -> None:
        if self.repo is None:
            return
        try:
            self.tasks = self.repo.load_tasks()
        except sqlite3.Error as e:
            logger.warning("Could not load tasks, starting empty: %s", e)
            self.tasks = []
        logger.info("Loaded %d task(s).", len(self.tasks))

    # ── Lookup ──────────────────────────────────────────────────────────────

    def find_task(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def ids(self) -> List[str]:
        return [t.id for t in self.tasks]

    # ── CRUD ────────────────────────────────────────────────────────────────

    def add_task(
        self,
        text: str,
        category: str = DEFAULT_CATEGORY,
        priority: str = DEFAULT_PRIORITY,
        deadline: str = "",
        pomodoro_target: int = 1,
    ) -> Task:
        text = (text or "").strip()
        if not text:
            raise ValueError("Task text cannot be empty.")
        task = Task(
            id=new_task_id(),
            text=text,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            priority=priority if priority in PRIORITIES else DEFAULT_PRIORITY,
            deadline=(deadline or "").strip(),
            created_at=self.clock().isoformat(),
            pomodoro_target=clamp_target(pomodoro_target),
        )
        self.tasks.append(task)
        self._persist()
        return task

    def update_task(self, task_id: str, **fields) -> Task:
        task = self._require(task_id)
        unknown = set(fields) - _EDITABLE
        if unknown:
            raise ValueError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        if "text" in fields:
            text = (fields["text"] or "").strip()
            if not text:
                raise ValueError("Task text cannot be empty.")
            task.text = text
        if "category" in fields:
            task.category = (fields["category"] or "").strip() or DEFAULT_CATEGORY
        if "priority" in fields:
            priority = fields["priority"]
            task.priority = priority if priority in PRIORITIES else DEFAULT_PRIORITY
        if "deadline" in fields:
            task.deadline = (fields["deadline"] or "").strip()
        if "pomodoro_target" in fields:
            task.pomodoro_target = clamp_target(fields["pomodoro_target"])
        self._persist()
        return task

    def delete_task(self, task_id: str) -> bool:
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        if len(self.tasks) == before:
            return False
        self._persist()
        self._notify_deleted([task_id])
        return True

    def clear_completed(self) -> List[str]:
        removed = [t.id for t in self.tasks if t.completed]
        if not removed:
            return []
        self.tasks = [t for t in self.tasks if not t.completed]
        self._persist()
        self._notify_deleted(removed)
        return removed

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self.tasks = [replace(t) for t in tasks]
        self._persist()
        ids = self.ids()
        for listener in self.on_tasks_bulk_replaced:
            listener(ids)

    # ── Timer / stats side effects ──────────────────────────────────────────

    def set_pomodoro_count(self, task_id: str, count: int) -> None:
        task = self._require(task_id)
        task.pomodoro_count = max(0, int(count))
        self._persist()

    def set_completion(self, task_id: str, completed: bool,
                       timestamp: Optional[datetime] = None) -> None:
        task = self._require(task_id)
        task.completed = completed
        if completed:
            task.completed_at = (timestamp or self.clock()).isoformat()
        else:
            task.completed_at = ""
        self._persist()

    # ── List view helpers ───────────────────────────────────────────────────

    def visible_tasks(self, filter_mode: str = "all", search: str = "") -> List[Task]:
        if filter_mode not in FILTERS:
            raise ValueError(f"Unknown filter: {filter_mode!r}")
        needle = search.strip().lower()
        result = []
        for task in self.tasks:
            if filter_mode == "active" and task.completed:
                continue
            if filter_mode == "completed" and not task.completed:
                continue
            if needle and needle not in task.text.lower():
                continue
            result.append(task)
        return sorted(result, key=_sort_key)

    def counts(self, today: Optional[date] = None) -> Dict[str, int]:
        today = today or self.clock().date()
        completed = sum(1 for t in self.tasks if t.completed)
        return {
            "total": len(self.tasks),
            "active": len(self.tasks) - completed,
            "completed": completed,
            "overdue": sum(1 for t in self.tasks if is_overdue(t, today)),
            "due_today": sum(1 for t in self.tasks if is_due_today(t, today)),
        }

    # ── Internal ────────────────────────────────────────────────────────────

    def _require(self, task_id: str) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise KeyError(f"Unknown task id: {task_id}")
        return task

    def _notify_deleted(self, task_ids: List[str]) -> None:
        for task_id in task_ids:
            for listener in self.on_task_deleted:
                listener(task_id)

    def _persist(self) -> None:
        if self.repo is None:
            return
        try:
            self.repo.save_tasks(self.tasks)
        except sqlite3.Error as e:
            logger.error("Could not save tasks: %s", e)
