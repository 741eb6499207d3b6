"""
Seed Data Generator — fills the planner with tasks and a week of history
for development and demos.

Run: python scripts/seed_data.py [num_tasks]
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studyplanner.data.database import Database
from studyplanner.data.models import PRIORITIES
from studyplanner.data.repository import Repository
from studyplanner.services.planner_service import PlannerService
from studyplanner.services.stats_aggregator import Counter, StatsAggregator
from studyplanner.services.task_store import TaskStore
from studyplanner.services.timer_engine import TimerEngine


def seed(num_tasks: int = 12) -> None:
    db = Database()
    db.connect()
    repo = Repository(db.conn)
    store = TaskStore(repo)
    stats = StatsAggregator()
    planner = PlannerService(store, TimerEngine(), stats, repo)
    planner.load()

    # ── Tasks ───────────────────────────────────────────────────────────
    samples = {
        "Study": ["Read chapter 4", "Flashcards: vocabulary", "Summarize lecture notes"],
        "Homework": ["Calculus problem set", "Physics lab report", "Essay outline"],
        "Exam": ["Past paper: algebra", "Review formulas"],
        "Project": ["Slides for group project", "Write project README"],
        "Personal": ["Plan next week", "Tidy desk"],
    }
    pool = [(cat, text) for cat, texts in samples.items() for text in texts]
    random.shuffle(pool)

    now = datetime.now()
    created = []
    for category, text in pool[:num_tasks]:
        deadline = ""
        if random.random() < 0.7:
            deadline = (now + timedelta(days=random.randint(-3, 10))).date().isoformat()
        task = store.add_task(
            text,
            category=category,
            priority=random.choice(PRIORITIES),
            deadline=deadline,
            pomodoro_target=random.randint(1, 6),
        )
        store.set_pomodoro_count(task.id, random.randint(0, task.pomodoro_target))
        created.append(task)

    # ── Completions + pomodoros for today ───────────────────────────────
    for task in random.sample(created, k=len(created) // 3):
        planner.toggle_task(task.id, True, now)

    for _ in range(random.randint(2, 8)):
        stats.apply_delta(Counter.POMODOROS, now, +1, now=now)

    db.close()
    print(f"Seeded {len(created)} tasks.")


if __name__ == "__main__":
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 12
    seed(count)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this script does:
#   Generates believable data so the Tasks and Stats tabs have something to
#   show on a fresh checkout: tasks across categories, some overdue, some
#   due today, some completed, plus a handful of pomodoros.
#
# Key points:
#   - Goes through TaskStore / PlannerService, not raw SQL, so the seeded
#     rows obey the same normalization and stats rules as the app.
