"""
Repository — the single place where SQL lives.

Every other module talks to Repository, never to raw SQL. Errors from sqlite
propagate; the service layer decides how to degrade.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from .models import StatsSnapshot, Task, normalize_stats, normalize_task

logger = logging.getLogger(__name__)

STATS_KEY = "stats_v1"


class Repository:
    """Data-access layer wrapping a sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # ── Tasks ───────────────────────────────────────────────────────────────

    def load_tasks(self) -> List[Task]:
        rows = self.conn.execute(
            "SELECT * FROM tasks ORDER BY position"
        ).fetchall()
        return [normalize_task(self._row_to_dict(r)) for r in rows]

    def save_tasks(self, tasks: List[Task]) -> None:
        """Replace the stored task list with `tasks`, keeping their order."""
        with self.conn:
            self.conn.execute("DELETE FROM tasks")
            self.conn.executemany(
                """INSERT INTO tasks (
                    id, position, text, category, priority, deadline,
                    completed, created_at, completed_at,
                    pomodoro_count, pomodoro_target
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        t.id, pos, t.text, t.category, t.priority, t.deadline,
                        int(t.completed), t.created_at, t.completed_at,
                        t.pomodoro_count, t.pomodoro_target,
                    )
                    for pos, t in enumerate(tasks)
                ],
            )

    def count_tasks(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
        return row[0]

    # ── Stats ───────────────────────────────────────────────────────────────

    def load_stats(self) -> Optional[StatsSnapshot]:
        raw = self._get_document(STATS_KEY)
        if raw is None:
            return None
        return normalize_stats(json.loads(raw))

    def save_stats(self, snapshot: StatsSnapshot) -> None:
        self._put_document(STATS_KEY, json.dumps(snapshot.to_dict()))

    # ── Maintenance ─────────────────────────────────────────────────────────

    def reset_all_data(self) -> None:
        """Delete all data. Requires explicit confirmation in the UI."""
        with self.conn:
            for table in ["tasks", "documents"]:
                self.conn.execute(f"DELETE FROM {table}")
        logger.warning("All data has been reset.")

    # ── Internal ────────────────────────────────────────────────────────────

    def _get_document(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM documents WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def _put_document(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                """INSERT INTO documents (key, value, updated_at)
                   VALUES (?, ?, datetime('now'))
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, value),
            )

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "text": row["text"],
            "category": row["category"],
            "priority": row["priority"],
            "deadline": row["deadline"],
            "completed": bool(row["completed"]),
            "createdAt": row["created_at"],
            "completedAt": row["completed_at"],
            "pomodoroCount": row["pomodoro_count"],
            "pomodoroTarget": row["pomodoro_target"],
        }


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The Repository is the ONLY place raw SQL lives. TaskStore and the stats
#   aggregator call save_tasks()/save_stats() instead of writing SQL.
#
# Key methods:
#   - load_tasks()/save_tasks(): the whole ordered list is rewritten in one
#     transaction, so the stored order always matches the in-memory order.
#   - load_stats()/save_stats(): the stats snapshot is one JSON document in
#     the `documents` table, keyed by STATS_KEY.
#
# Data flow:
#   TaskStore mutation → Repository.save_tasks() → sqlite
#   App start → Repository.load_tasks() → normalize_task() → Task list
#
# Interviewer-friendly talking points:
#   1. `with self.conn:` commits on success and rolls back on error, so a
#      failed save never leaves a half-written task table.
#   2. Loading goes through the same normalizer as JSON import.
