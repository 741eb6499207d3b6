"""
Snapshot format — the JSON document used for export files and import.

    {"version": 1, "exportedAt": ..., "tasks": [...], "stats": {...}}

parse_snapshot() validates and normalizes the whole payload before anything
is applied, so a bad file can never leave the app half-imported.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from studyplanner.data.models import StatsSnapshot, Task, normalize_stats, normalize_task

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotFormatError(ValueError):
    """Import payload is malformed. The message is shown to the user as-is."""


def build_snapshot(tasks: Iterable[Task], stats: StatsSnapshot,
                   exported_at: datetime) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "exportedAt": exported_at.isoformat(),
        "tasks": [t.to_dict() for t in tasks],
        "stats": stats.to_dict(),
    }


def parse_snapshot(payload: Any) -> Tuple[List[Task], StatsSnapshot]:
    if not isinstance(payload, dict):
        raise SnapshotFormatError("Invalid file format: expected a JSON object.")
    raw_tasks = payload.get("tasks")
    raw_stats = payload.get("stats")
    if not isinstance(raw_tasks, list) or not isinstance(raw_stats, dict):
        raise SnapshotFormatError(
            "Invalid file format: expected a 'tasks' list and a 'stats' object."
        )
    if not all(isinstance(r, dict) for r in raw_tasks):
        raise SnapshotFormatError("Invalid file format: every task must be an object.")

    tasks = [normalize_task(r) for r in raw_tasks]
    seen = set()
    for task in tasks:
        if task.id in seen:
            raise SnapshotFormatError(f"Invalid file format: duplicate task id {task.id}.")
        seen.add(task.id)
    return tasks, normalize_stats(raw_stats)


def write_snapshot_file(path: Path, snapshot: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2)
    logger.info("Exported %d task(s) to %s", len(snapshot["tasks"]), path)


def read_snapshot_file(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Invalid file format: not valid JSON ({e.msg}).") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotFormatError(f"Could not read file: {e}") from e
