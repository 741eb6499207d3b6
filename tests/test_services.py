"""Unit tests for the service layer (planner wiring, snapshots, config)."""

import json
import pytest
from datetime import datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studyplanner.config import (
    DEFAULT_CONFIG, durations_from_config, load_config, reset_config, save_config,
)
from studyplanner.data.database import connect_memory
from studyplanner.data.models import StatsCounters, StatsSnapshot
from studyplanner.data.repository import Repository
from studyplanner.services.planner_service import DEFAULT_SESSION_TITLE, PlannerService
from studyplanner.services.snapshot_service import SnapshotFormatError, parse_snapshot
from studyplanner.services.stats_aggregator import StatsAggregator
from studyplanner.services.task_store import TaskStore
from studyplanner.services.timer_engine import TimerEngine

NOW = datetime(2024, 3, 6, 9, 0)   # Wednesday, 2024-W10
LAST_WEEK = datetime(2024, 2, 28, 15, 0)


def make_planner(repo, clock=lambda: NOW):
    store = TaskStore(repo, clock=clock)
    engine = TimerEngine(clock=clock)
    stats = StatsAggregator(clock=clock)
    planner = PlannerService(store, engine, stats, repo, clock=clock)
    planner.load(clock())
    return planner


@pytest.fixture
def repo():
    return Repository(connect_memory())


@pytest.fixture
def planner(repo):
    return make_planner(repo)


def snapshot_payload(**overrides):
    payload = {
        "version": 1,
        "exportedAt": NOW.isoformat(),
        "tasks": [
            {"id": "t1", "text": "Essay", "priority": "high", "createdAt": "2024-03-01T08:00:00"},
            {"id": "t2", "text": "Old win", "completed": True,
             "completedAt": LAST_WEEK.isoformat(), "createdAt": "2024-02-20T08:00:00"},
        ],
        "stats": {
            "lastDate": "2024-03-06", "lastWeekKey": "2024-W10",
            "daily": {"completedTasks": 0, "pomodoros": 2},
            "weekly": {"completedTasks": 1, "pomodoros": 5},
            "total": {"completedTasks": 7, "pomodoros": 30},
        },
    }
    payload.update(overrides)
    return payload


class TestTaskCompletion:
    def test_complete_counts_today(self, planner):
        task = planner.store.add_task("Read")
        planner.toggle_task(task.id, True, NOW)
        snap = planner.stats.read(NOW)
        assert snap.daily.completed_tasks == 1
        assert snap.total.completed_tasks == 1
        assert task.completed_at == NOW.isoformat()

    def test_uncomplete_reverts(self, planner):
        task = planner.store.add_task("Read")
        planner.toggle_task(task.id, True, NOW)
        planner.toggle_task(task.id, False, NOW + timedelta(minutes=5))
        snap = planner.stats.read(NOW)
        assert snap.daily.completed_tasks == 0
        assert snap.total.completed_tasks == 0
        assert task.completed_at == ""

    def test_repeat_toggle_is_noop(self, planner):
        task = planner.store.add_task("Read")
        planner.toggle_task(task.id, True, NOW)
        planner.toggle_task(task.id, True, NOW)
        assert planner.stats.read(NOW).total.completed_tasks == 1

    def test_unknown_task_is_ignored(self, planner):
        planner.toggle_task("missing", True, NOW)
        assert planner.stats.read(NOW).total.completed_tasks == 0

    def test_uncomplete_last_week_only_touches_total(self, planner):
        planner.import_snapshot(snapshot_payload(), NOW)
        planner.toggle_task("t2", False, NOW)
        snap = planner.stats.read(NOW)
        assert snap.total.completed_tasks == 6
        assert snap.weekly.completed_tasks == 1
        assert snap.daily.completed_tasks == 0

    def test_delete_and_clear_do_not_change_stats(self, planner):
        a = planner.store.add_task("A")
        b = planner.store.add_task("B")
        planner.toggle_task(a.id, True, NOW)
        planner.toggle_task(b.id, True, NOW)
        planner.delete_task(a.id)
        planner.clear_completed()
        assert planner.stats.read(NOW).total.completed_tasks == 2

    def test_stats_persisted(self, planner, repo):
        task = planner.store.add_task("Read")
        planner.toggle_task(task.id, True, NOW)
        assert repo.load_stats().total.completed_tasks == 1


class TestFocusCompletion:
    def test_focus_credits_bound_task_and_stats(self, planner):
        task = planner.store.add_task("Essay", pomodoro_target=3)
        planner.engine.start_session(task_id=task.id, now=NOW)
        planner.engine.tick(NOW + timedelta(seconds=1500))
        assert task.pomodoro_count == 1
        snap = planner.stats.read(NOW)
        assert snap.daily.pomodoros == 1
        assert snap.total.pomodoros == 1

    def test_focus_without_task_still_counts(self, planner):
        planner.engine.start_session(label="Reading", now=NOW)
        planner.engine.tick(NOW + timedelta(seconds=1500))
        assert planner.stats.read(NOW).total.pomodoros == 1

    def test_break_does_not_count(self, planner):
        planner.engine.start_session(now=NOW)
        planner.engine.tick(NOW + timedelta(seconds=1500))
        planner.engine.tick(NOW + timedelta(seconds=1800))
        assert planner.stats.read(NOW).total.pomodoros == 1

    def test_deleted_task_is_unbound(self, planner):
        task = planner.store.add_task("Essay")
        planner.engine.start_session(task_id=task.id, now=NOW)
        planner.delete_task(task.id)
        assert planner.engine.session.bound_task_id is None
        planner.engine.tick(NOW + timedelta(seconds=1500))
        assert planner.stats.read(NOW).total.pomodoros == 1

    def test_late_tick_books_focus_to_the_day_it_ended(self, repo):
        current = [datetime(2024, 3, 4, 23, 30)]   # Monday night
        planner = make_planner(repo, clock=lambda: current[0])
        task = planner.store.add_task("Essay")
        planner.engine.start_session(task_id=task.id, now=current[0])

        current[0] = datetime(2024, 3, 5, 8, 0)   # woke up Tuesday
        planner.engine.tick(current[0])

        snap = planner.stats.read(current[0])
        assert snap.daily.pomodoros == 0
        assert snap.weekly.pomodoros == 1
        assert snap.total.pomodoros == 1
        assert task.pomodoro_count == 1

    def test_focus_booked_callback(self, planner):
        booked = []
        planner.on_focus_booked = booked.append
        planner.engine.start_session(now=NOW)
        planner.engine.tick(NOW + timedelta(seconds=1500))
        assert [e.cycle for e in booked] == [1]

    def test_bound_task_title(self, planner):
        assert planner.bound_task_title() == DEFAULT_SESSION_TITLE
        task = planner.store.add_task("Essay")
        planner.engine.start_session(task_id=task.id, now=NOW)
        assert planner.bound_task_title() == "Essay"


class TestSnapshots:
    def test_export_import_round_trip(self, planner):
        task = planner.store.add_task("Essay", priority="high", deadline="2024-03-10")
        planner.toggle_task(task.id, True, NOW)
        exported = planner.export_snapshot(NOW)
        assert exported["version"] == 1
        assert exported["exportedAt"] == NOW.isoformat()

        other = make_planner(Repository(connect_memory()))
        other.import_snapshot(json.loads(json.dumps(exported)), NOW)
        assert [t.to_dict() for t in other.store.tasks] == exported["tasks"]
        assert other.stats.read(NOW).to_dict() == exported["stats"]

    def test_import_normalizes_records(self, planner):
        payload = snapshot_payload(tasks=[
            {"id": "x", "text": "  ", "priority": "urgent", "pomodoroTarget": 99},
        ])
        planner.import_snapshot(payload, NOW)
        task = planner.store.find_task("x")
        assert task.text == "Untitled task"
        assert task.priority == "medium"
        assert task.pomodoro_target == 20

    @pytest.mark.parametrize("payload", [
        "not an object",
        [],
        {"tasks": [], "stats": None},
        {"tasks": {}, "stats": {}},
        {"stats": {}},
        {"tasks": [1, 2], "stats": {}},
        {"tasks": [{"id": "a"}, {"id": "a"}], "stats": {}},
    ])
    def test_bad_payload_changes_nothing(self, planner, payload):
        task = planner.store.add_task("Keep me")
        planner.toggle_task(task.id, True, NOW)
        with pytest.raises(SnapshotFormatError):
            planner.import_snapshot(payload, NOW)
        assert planner.store.ids() == [task.id]
        assert planner.stats.read(NOW).total.completed_tasks == 1

    def test_import_clears_dangling_binding(self, planner):
        task = planner.store.add_task("Essay")
        planner.engine.start_session(task_id=task.id, now=NOW)
        planner.import_snapshot(snapshot_payload(), NOW)
        assert planner.engine.session.bound_task_id is None

    def test_import_keeps_binding_when_task_survives(self, planner):
        planner.import_snapshot(snapshot_payload(), NOW)
        planner.engine.start_session(task_id="t1", now=NOW)
        planner.import_snapshot(snapshot_payload(), NOW)
        assert planner.engine.session.bound_task_id == "t1"

    def test_file_round_trip(self, planner, tmp_path):
        planner.store.add_task("Essay")
        path = tmp_path / "backup.json"
        planner.export_to_file(path, NOW)
        other = make_planner(Repository(connect_memory()))
        other.import_from_file(path, NOW)
        assert [t.text for t in other.store.tasks] == ["Essay"]

    def test_invalid_json_file(self, planner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotFormatError, match="not valid JSON"):
            planner.import_from_file(path, NOW)

    def test_missing_file(self, planner, tmp_path):
        with pytest.raises(SnapshotFormatError):
            planner.import_from_file(tmp_path / "nope.json", NOW)

    def test_parse_snapshot_returns_normalized_stats(self):
        tasks, stats = parse_snapshot(snapshot_payload())
        assert [t.id for t in tasks] == ["t1", "t2"]
        assert stats.total == StatsCounters(7, 30)


class TestStartupAndReset:
    def test_load_restores_tasks_and_stats(self, repo):
        first = make_planner(repo)
        task = first.store.add_task("Essay")
        first.toggle_task(task.id, True, NOW)

        second = make_planner(repo)
        assert second.store.ids() == [task.id]
        assert second.stats.read(NOW).total.completed_tasks == 1

    def test_load_rolls_stale_stats_forward(self, repo):
        repo.save_stats(StatsSnapshot(
            last_date="2024-02-28", last_week_key="2024-W09",
            daily=StatsCounters(2, 2), weekly=StatsCounters(3, 3),
            total=StatsCounters(9, 9),
        ))
        planner = make_planner(repo)
        snap = planner.stats.read(NOW)
        assert snap.last_week_key == "2024-W10"
        assert snap.daily == StatsCounters(0, 0)
        assert snap.weekly == StatsCounters(0, 0)
        assert snap.total == StatsCounters(9, 9)

    def test_corrupt_stats_document_starts_fresh(self, repo):
        repo.conn.execute(
            "INSERT INTO documents (key, value) VALUES (?, ?)", ("stats_v1", "{not json"),
        )
        repo.conn.commit()
        planner = make_planner(repo)
        snap = planner.stats.read(NOW)
        assert snap.total == StatsCounters(0, 0)
        assert snap.last_date == "2024-03-06"

        task = planner.store.add_task("Essay")
        planner.toggle_task(task.id, True, NOW)
        reloaded = make_planner(repo)
        assert reloaded.stats.read(NOW).total.completed_tasks == 1

    def test_unreadable_database_still_starts(self, repo):
        repo.conn.close()
        planner = make_planner(repo)
        assert planner.store.tasks == []
        assert planner.stats.read(NOW).total == StatsCounters(0, 0)
        task = planner.store.add_task("Offline")
        planner.toggle_task(task.id, True, NOW)
        assert planner.stats.read(NOW).daily.completed_tasks == 1

    def test_reset_all(self, planner, repo):
        task = planner.store.add_task("Essay")
        planner.toggle_task(task.id, True, NOW)
        planner.engine.start_session(task_id=task.id, now=NOW)
        planner.reset_all(NOW)
        assert planner.store.tasks == []
        assert planner.stats.read(NOW).total == StatsCounters(0, 0)
        assert planner.engine.session.is_running is False
        assert repo.count_tasks() == 0


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "settings.json") == DEFAULT_CONFIG

    def test_partial_file_is_merged(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"focus_minutes": 50, "unknown": 1}), encoding="utf-8")
        cfg = load_config(path)
        assert cfg["focus_minutes"] == 50
        assert cfg["short_break_minutes"] == 5
        assert "unknown" not in cfg

    def test_broken_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2", encoding="utf-8")
        assert load_config(path) == DEFAULT_CONFIG

    def test_unknown_theme_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme": "neon"}), encoding="utf-8")
        assert load_config(path)["theme"] == "light"

    def test_save_and_reset(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        cfg = DEFAULT_CONFIG.copy()
        cfg["theme"] = "dark"
        save_config(cfg, path)
        assert load_config(path)["theme"] == "dark"
        reset_config(path)
        assert load_config(path)["theme"] == "light"

    def test_durations_from_config(self):
        d = durations_from_config(DEFAULT_CONFIG)
        assert (d.focus, d.short_break, d.long_break, d.long_break_every) == (1500, 300, 900, 4)

    def test_durations_are_clamped(self):
        cfg = dict(DEFAULT_CONFIG, focus_minutes=0, short_break_minutes=500,
                   long_break_minutes="x")
        d = durations_from_config(cfg)
        assert d.focus == 60
        assert d.short_break == 180 * 60
        assert d.long_break == 15 * 60
