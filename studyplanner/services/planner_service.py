"""
Planner Service — wires the timer, the stats and the task list together.

    focus phase ends   → +1 pomodoro (stats) → +1 progress on the bound task
    task toggled       → ±1 completed task (stats), anchored at completion time
    snapshot imported  → tasks + stats replaced together, dangling binding cleared
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from studyplanner.data.models import StatsSnapshot, Task
from studyplanner.data.repository import Repository
from studyplanner.services.snapshot_service import (
    build_snapshot, parse_snapshot, read_snapshot_file, write_snapshot_file,
)
from studyplanner.services.stats_aggregator import Counter, StatsAggregator
from studyplanner.services.task_store import TaskStore
from studyplanner.services.timer_engine import FocusCompleted, TimerEngine

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "Focus session"


class PlannerService:
    """Owns the collaboration between TaskStore, TimerEngine and StatsAggregator."""

    def __init__(
        self,
        store: TaskStore,
        engine: TimerEngine,
        stats: StatsAggregator,
        repo: Optional[Repository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.engine = engine
        self.stats = stats
        self.repo = repo
        self.clock = clock

        # Called after a focus completion has been booked (UI refresh, sound)
        self.on_focus_booked: Optional[Callable[[FocusCompleted], None]] = None

        self.engine.on_focus_completed = self._on_focus_completed
        self.stats.on_change = self._save_stats
        self.store.on_task_deleted.append(self.engine.on_task_deleted)
        self.store.on_tasks_bulk_replaced.append(self.engine.on_tasks_bulk_replaced)

    # ── Startup ─────────────────────────────────────────────────────────────

    def load(self, now: Optional[datetime] = None) -> None:
        self.store.load()
        snapshot = None
        if self.repo is not None:
            try:
                snapshot = self.repo.load_stats()
            except (sqlite3.Error, ValueError) as e:
                logger.warning("Could not load stats, starting fresh: %s", e)
        self.stats.snapshot = snapshot or StatsSnapshot()
        self.stats.rollover(now)
        self.engine.clear_binding_if_missing(self.store.find_task)

    # ── Tasks ───────────────────────────────────────────────────────────────

    def toggle_task(self, task_id: str, completed: bool,
                    now: Optional[datetime] = None) -> None:
        task = self.store.find_task(task_id)
        if task is None or task.completed == completed:
            return
        now = now or self.clock()
        if completed:
            self.store.set_completion(task_id, True, now)
            self.stats.apply_delta(Counter.COMPLETED_TASKS, now, +1, now=now)
        else:
            completed_at = task.completed_at
            self.store.set_completion(task_id, False)
            self.stats.apply_delta(Counter.COMPLETED_TASKS, completed_at, -1, now=now)

    def delete_task(self, task_id: str) -> bool:
        return self.store.delete_task(task_id)

    def clear_completed(self) -> List[str]:
        return self.store.clear_completed()

    def bound_task(self) -> Optional[Task]:
        return self.store.find_task(self.engine.session.bound_task_id)

    def bound_task_title(self) -> str:
        task = self.bound_task()
        if task is not None:
            return task.text
        return self.engine.session.label or DEFAULT_SESSION_TITLE

    # ── Timer ───────────────────────────────────────────────────────────────

    def _on_focus_completed(self, event: FocusCompleted) -> None:
        # completed_at can lie in the past (late tick after a suspend)
        now = max(self.clock(), event.completed_at)
        self.stats.apply_delta(Counter.POMODOROS, event.completed_at, +1, now=now)
        task = self.store.find_task(event.task_id)
        if task is not None:
            self.store.set_pomodoro_count(task.id, task.pomodoro_count + 1)
        logger.info("Focus session #%d booked (task=%s)", event.cycle, event.task_id)
        if self.on_focus_booked:
            self.on_focus_booked(event)

    # ── Export / import ─────────────────────────────────────────────────────

    def export_snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or self.clock()
        return build_snapshot(self.store.tasks, self.stats.read(now), now)

    def import_snapshot(self, payload: Any, now: Optional[datetime] = None) -> None:
        """Replace all tasks and stats. Raises SnapshotFormatError, changing nothing."""
        tasks, stats = parse_snapshot(payload)
        now = now or self.clock()
        self.store.replace_all(tasks)
        self.stats.replace(stats, now)
        logger.info("Imported %d task(s).", len(tasks))

    def export_to_file(self, path: Path, now: Optional[datetime] = None) -> None:
        write_snapshot_file(path, self.export_snapshot(now))

    def import_from_file(self, path: Path, now: Optional[datetime] = None) -> None:
        self.import_snapshot(read_snapshot_file(path), now)

    def reset_all(self, now: Optional[datetime] = None) -> None:
        """Wipe tasks and stats and put the timer back to an idle Focus phase."""
        if self.repo is not None:
            try:
                self.repo.reset_all_data()
            except sqlite3.Error as e:
                logger.error("Could not reset stored data: %s", e)
        self.engine.reset(now)
        self.store.replace_all([])
        self.stats.replace(StatsSnapshot(), now or self.clock())

    # ── Internal ────────────────────────────────────────────────────────────

    def _save_stats(self, snapshot: StatsSnapshot) -> None:
        if self.repo is None:
            return
        try:
            self.repo.save_stats(snapshot)
        except sqlite3.Error as e:
            logger.error("Could not save stats: %s", e)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The glue between three components that never import each other:
#   TimerEngine reports, StatsAggregator counts, TaskStore remembers.
#
# Key flows:
#   - _on_focus_completed(): the only place pomodoros are counted.
#   - toggle_task(): completing stamps completedAt=now and adds 1; undoing
#     subtracts 1 from whatever period that old completedAt falls into.
#   - import_snapshot(): parse_snapshot() validates everything first; only
#     then are the store and the stats swapped.
#
# Interviewer-friendly talking points:
#   1. The timer holds a task *id*, never a Task. Deleting a task triggers
#      the store listener, which clears the binding.
#   2. Storage errors are logged and swallowed here; the in-memory state is
#      still correct and the next successful save catches up.
