"""Unit tests for the data layer (database, repository, models, task store)."""

import sqlite3
import pytest
from datetime import date, datetime, timedelta

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studyplanner.data.database import Database, connect_memory
from studyplanner.data.repository import Repository
from studyplanner.data.models import (
    PLACEHOLDER_TEXT, StatsCounters, StatsSnapshot, Task,
    clamp_target, normalize_stats, normalize_task, parse_timestamp,
)
from studyplanner.services.task_store import TaskStore, is_due_today, is_overdue

NOW = datetime(2024, 3, 4, 9, 0)
TODAY = NOW.date()


@pytest.fixture
def repo():
    """Create an in-memory database for testing."""
    return Repository(connect_memory())


@pytest.fixture
def store(repo):
    return TaskStore(repo, clock=lambda: NOW)


class TestDatabase:
    def test_connect_creates_schema(self, tmp_path):
        db = Database(db_path=tmp_path / "planner.db")
        conn = db.connect()
        tables = {
            r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"tasks", "documents"} <= tables
        db.close()
        assert db.conn is None

    def test_connect_is_idempotent(self, tmp_path):
        db = Database(db_path=tmp_path / "planner.db")
        assert db.connect() is db.connect()
        db.close()


class TestRepository:
    def test_save_and_load_tasks_keeps_order(self, repo):
        tasks = [
            Task(id="b", text="Second", created_at="2024-03-01T10:00:00"),
            Task(id="a", text="First", created_at="2024-03-02T10:00:00",
                 completed=True, completed_at="2024-03-03T11:00:00",
                 pomodoro_count=2, pomodoro_target=4),
        ]
        repo.save_tasks(tasks)
        loaded = repo.load_tasks()
        assert [t.id for t in loaded] == ["b", "a"]
        assert loaded[1] == tasks[1]
        assert repo.count_tasks() == 2

    def test_save_replaces_previous_list(self, repo):
        repo.save_tasks([Task(id="a", text="A", created_at="x")])
        repo.save_tasks([Task(id="b", text="B", created_at="x")])
        assert [t.id for t in repo.load_tasks()] == ["b"]

    def test_stats_missing(self, repo):
        assert repo.load_stats() is None

    def test_stats_round_trip(self, repo):
        snap = StatsSnapshot(
            last_date="2024-03-04", last_week_key="2024-W10",
            daily=StatsCounters(1, 2), weekly=StatsCounters(3, 4),
            total=StatsCounters(5, 6),
        )
        repo.save_stats(snap)
        repo.save_stats(snap)  # upsert, not a second row
        assert repo.load_stats() == snap

    def test_reset_all_data(self, repo):
        repo.save_tasks([Task(id="a", text="A", created_at="x")])
        repo.save_stats(StatsSnapshot(total=StatsCounters(1, 1)))
        repo.reset_all_data()
        assert repo.count_tasks() == 0
        assert repo.load_stats() is None


class TestNormalization:
    def test_defaults_for_sparse_record(self):
        task = normalize_task({"text": "Read"})
        assert task.id
        assert task.category == "General"
        assert task.priority == "medium"
        assert task.deadline == ""
        assert task.completed is False
        assert task.created_at
        assert task.pomodoro_count == 0
        assert task.pomodoro_target == 1

    def test_blank_text_gets_placeholder(self):
        assert normalize_task({"text": "   "}).text == PLACEHOLDER_TEXT
        assert normalize_task({}).text == PLACEHOLDER_TEXT

    def test_unknown_priority(self):
        assert normalize_task({"text": "x", "priority": "urgent"}).priority == "medium"

    def test_completed_at_dropped_when_not_completed(self):
        task = normalize_task({
            "text": "x", "completed": False, "completedAt": "2024-03-01T10:00:00",
        })
        assert task.completed_at == ""

    def test_negative_and_bogus_counts(self):
        assert normalize_task({"text": "x", "pomodoroCount": -3}).pomodoro_count == 0
        assert normalize_task({"text": "x", "pomodoroCount": "many"}).pomodoro_count == 0

    @pytest.mark.parametrize("raw, expected", [
        (0, 1), (1, 1), (7, 7), (20, 20), (99, 20), ("5", 5), (None, 1), ("x", 1),
    ])
    def test_clamp_target(self, raw, expected):
        assert clamp_target(raw) == expected

    def test_normalize_stats_garbage(self):
        assert normalize_stats("nope") == StatsSnapshot()
        snap = normalize_stats({"total": {"completedTasks": -1, "pomodoros": 4}})
        assert snap.total == StatsCounters(0, 4)
        assert snap.daily == StatsCounters(0, 0)

    def test_parse_timestamp(self):
        assert parse_timestamp("2024-03-04T09:30:00") == datetime(2024, 3, 4, 9, 30)
        assert parse_timestamp(NOW) == NOW
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_parse_timestamp_utc_suffix_is_naive_local(self):
        dt = parse_timestamp("2024-03-04T09:30:00Z")
        assert dt is not None
        assert dt.tzinfo is None


class TestTaskStore:
    def test_add_task(self, store, repo):
        task = store.add_task("  Read chapter 4  ", category="", priority="high",
                              pomodoro_target=40)
        assert task.text == "Read chapter 4"
        assert task.category == "General"
        assert task.priority == "high"
        assert task.pomodoro_target == 20
        assert task.created_at == NOW.isoformat()
        assert repo.load_tasks()[0].id == task.id

    def test_add_blank_task_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_task("   ")
        assert store.tasks == []

    def test_update_task(self, store):
        task = store.add_task("Draft")
        store.update_task(task.id, text="Final", priority="bogus", deadline="2024-03-10")
        assert task.text == "Final"
        assert task.priority == "medium"
        assert task.deadline == "2024-03-10"

    def test_update_rejects_unknown_field(self, store):
        task = store.add_task("Draft")
        with pytest.raises(ValueError):
            store.update_task(task.id, completed=True)

    def test_update_unknown_id(self, store):
        with pytest.raises(KeyError):
            store.update_task("missing", text="x")

    def test_delete_notifies_listeners(self, store):
        deleted = []
        store.on_task_deleted.append(deleted.append)
        task = store.add_task("Gone soon")
        assert store.delete_task(task.id) is True
        assert store.delete_task(task.id) is False
        assert deleted == [task.id]

    def test_clear_completed(self, store):
        keep = store.add_task("Keep")
        done = store.add_task("Done")
        store.set_completion(done.id, True, NOW)
        assert store.clear_completed() == [done.id]
        assert store.ids() == [keep.id]
        assert store.clear_completed() == []

    def test_set_completion_stamps_and_clears(self, store):
        task = store.add_task("Finish")
        store.set_completion(task.id, True, NOW)
        assert task.completed_at == NOW.isoformat()
        store.set_completion(task.id, False)
        assert task.completed_at == ""

    def test_replace_all_notifies_with_new_ids(self, store):
        seen = []
        store.on_tasks_bulk_replaced.append(seen.append)
        store.add_task("Old")
        store.replace_all([Task(id="n1", text="New", created_at="x")])
        assert seen == [["n1"]]
        assert store.ids() == ["n1"]

    def test_load_from_repo(self, repo):
        repo.save_tasks([Task(id="a", text="Stored", created_at="x")])
        store = TaskStore(repo)
        store.load()
        assert store.ids() == ["a"]

    def test_read_failure_starts_empty(self, repo):
        repo.save_tasks([Task(id="a", text="Stored", created_at="x")])
        repo.conn.close()
        store = TaskStore(repo)
        store.load()
        assert store.tasks == []

    def test_write_failure_keeps_memory(self, store, repo):
        repo.conn.close()
        task = store.add_task("Still here")
        assert store.find_task(task.id) is task


class TestTaskListView:
    @pytest.fixture
    def populated(self, store):
        tomorrow = (TODAY + timedelta(days=1)).isoformat()
        yesterday = (TODAY - timedelta(days=1)).isoformat()
        store.add_task("No deadline, high", priority="high")
        store.add_task("Tomorrow, low", priority="low", deadline=tomorrow)
        store.add_task("Tomorrow, high", priority="high", deadline=tomorrow)
        store.add_task("Overdue essay", deadline=yesterday)
        done = store.add_task("Due today, done", deadline=TODAY.isoformat())
        store.set_completion(done.id, True, NOW)
        return store

    def test_sort_order(self, populated):
        texts = [t.text for t in populated.visible_tasks()]
        assert texts == [
            "Overdue essay",
            "Due today, done",
            "Tomorrow, high",
            "Tomorrow, low",
            "No deadline, high",
        ]

    def test_filters(self, populated):
        assert len(populated.visible_tasks("active")) == 4
        assert [t.text for t in populated.visible_tasks("completed")] == ["Due today, done"]

    def test_search_is_case_insensitive(self, populated):
        assert [t.text for t in populated.visible_tasks("all", "ESSAY")] == ["Overdue essay"]
        assert populated.visible_tasks("all", "nothing like this") == []

    def test_unknown_filter(self, populated):
        with pytest.raises(ValueError):
            populated.visible_tasks("someday")

    def test_counts(self, populated):
        assert populated.counts(TODAY) == {
            "total": 5, "active": 4, "completed": 1, "overdue": 1, "due_today": 0,
        }

    def test_overdue_and_due_today_ignore_completed(self):
        task = Task(text="x", deadline=TODAY.isoformat())
        assert is_due_today(task, TODAY)
        assert not is_overdue(task, TODAY)
        assert is_overdue(task, date(2024, 3, 5))
        task.completed = True
        assert not is_due_today(task, TODAY)
        assert not is_overdue(task, date(2024, 3, 5))
