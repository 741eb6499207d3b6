"""
Main Window — the central hub of the study planner.

Contains:
  - Tasks tab (list, filters, add/edit)
  - Timer tab (focus / break countdown)
  - Stats tab (today, this week, all time)
  - Settings tab (timer lengths, theme, sound, data)
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Optional

from PySide6.QtCore import Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QApplication, QMainWindow, QTabWidget

from studyplanner.audio.sound_manager import SoundManager
from studyplanner.config import durations_from_config, load_config, save_config
from studyplanner.data.database import Database, connect_memory
from studyplanner.data.repository import Repository
from studyplanner.services.planner_service import PlannerService
from studyplanner.services.stats_aggregator import StatsAggregator
from studyplanner.services.task_store import TaskStore
from studyplanner.services.tick_service import TickService
from studyplanner.services.timer_engine import FocusCompleted, Phase, PhaseExpired, TimerEngine
from studyplanner.ui.settings_widget import SettingsWidget
from studyplanner.ui.stats_widget import StatsWidget
from studyplanner.ui.styles import stylesheet_for
from studyplanner.ui.task_panel import TaskPanel
from studyplanner.ui.timer_widget import TimerWidget

logger = logging.getLogger(__name__)

STATUS_TIMEOUT_MS = 8000


class MainWindow(QMainWindow):
    """The main application window."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__()
        self.setWindowTitle("Study Planner")
        self.setMinimumSize(820, 600)
        self.resize(980, 700)

        self.config = config if config is not None else load_config()

        # ── Initialize core systems ─────────────────────────────────────
        self.db = Database()
        try:
            conn = self.db.connect()
        except sqlite3.Error as e:
            # nothing will survive a restart, but the app stays usable
            logger.error("Could not open %s, using in-memory storage: %s",
                         self.db.db_path, e)
            conn = connect_memory()
        self.repo = Repository(conn)

        self.store = TaskStore(self.repo)
        self.engine = TimerEngine(durations_from_config(self.config))
        self.stats = StatsAggregator()
        self.planner = PlannerService(self.store, self.engine, self.stats, self.repo)
        self.planner.load()
        self.planner.on_focus_booked = self._on_focus_booked

        self.sound = SoundManager(
            enabled=bool(self.config.get("sound_enabled", True)),
            volume=float(self.config.get("volume", 0.5)),
        )

        self.ticker = TickService(
            self.engine,
            interval_ms=int(self.config.get("tick_interval_ms", 250)),
            on_expired=self._on_phase_expired,
        )

        # ── Build UI ────────────────────────────────────────────────────
        self._build_ui()
        self.ticker.on_tick = self.timer_widget.render

        self.statusBar().showMessage(
            f"{len(self.store.tasks)} task(s) loaded.", STATUS_TIMEOUT_MS
        )

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        # Tab 1: Tasks
        self.task_panel = TaskPanel(self.planner)
        self.task_panel.tasks_changed.connect(self._on_tasks_changed)
        self.task_panel.focus_requested.connect(self._on_focus_requested)
        self.tabs.addTab(self.task_panel, "Tasks")

        # Tab 2: Timer
        self.timer_widget = TimerWidget(self.planner, self.ticker)
        self.timer_widget.session_changed.connect(self.task_panel.refresh)
        self.timer_widget.session_started.connect(lambda: self.sound.play("session_start"))
        self.tabs.addTab(self.timer_widget, "Timer")

        # Tab 3: Stats
        self.stats_widget = StatsWidget(self.stats)
        self.tabs.addTab(self.stats_widget, "Stats")

        # Tab 4: Settings
        self.settings_widget = SettingsWidget(self.config, self.planner, self.sound)
        self.settings_widget.settings_changed.connect(self._on_settings_changed)
        self.settings_widget.theme_changed.connect(self._apply_theme)
        self.settings_widget.data_replaced.connect(self._on_data_replaced)
        self.tabs.addTab(self.settings_widget, "Settings")

        # Stats may have rolled over to a new day while the window was open
        self.tabs.currentChanged.connect(self._on_tab_changed)

    # ── Timer events ────────────────────────────────────────────────────

    def _on_phase_expired(self, event: PhaseExpired) -> None:
        if event.phase is Phase.FOCUS:
            self.sound.play("focus_complete")
            message = (f"Focus session finished: {self.planner.bound_task_title()}. "
                       "Time for a break.")
        else:
            self.sound.play("break_complete")
            message = f"{event.phase.title} is over. Ready to focus?"
        self.statusBar().showMessage(message, STATUS_TIMEOUT_MS)
        QApplication.alert(self)

    def _on_focus_booked(self, event: FocusCompleted) -> None:
        self.task_panel.refresh()
        self.stats_widget.refresh()

    # ── Tasks ───────────────────────────────────────────────────────────

    @Slot()
    def _on_tasks_changed(self) -> None:
        self.stats_widget.refresh()
        self.timer_widget.render(self.engine.snapshot())

    @Slot(str)
    def _on_focus_requested(self, task_id: str) -> None:
        if self.timer_widget.start_for_task(task_id):
            self.tabs.setCurrentWidget(self.timer_widget)

    # ── Misc ────────────────────────────────────────────────────────────

    @Slot()
    def _on_settings_changed(self) -> None:
        self.ticker.sync()
        save_config(self.config)

    @Slot(str)
    def _apply_theme(self, theme: str) -> None:
        app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(stylesheet_for(theme))

    @Slot()
    def _on_data_replaced(self) -> None:
        self.ticker.sync()
        self.task_panel.refresh()
        self.stats_widget.refresh()

    @Slot(int)
    def _on_tab_changed(self, index: int) -> None:
        widget = self.tabs.widget(index)
        if widget is self.stats_widget:
            self.stats_widget.refresh()
        elif widget is self.task_panel:
            self.task_panel.refresh()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.ticker.stop()
        save_config(self.config)
        self.db.close()
        logger.info("Main window closed.")
        event.accept()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Builds every service once, hands them to the four tabs and routes the
#   few cross-tab events: a task's Focus button starts the timer, a finished
#   focus phase refreshes the task list and the stats, a data import or
#   reset refreshes everything.
#
# Data flow:
#   TaskPanel.focus_requested → TimerWidget.start_for_task → engine
#   TickService.on_tick → TimerWidget.render
#   TickService.on_expired → sound + status bar + taskbar alert
#   PlannerService.on_focus_booked → TaskPanel / StatsWidget refresh
#
# Interviewer-friendly talking points:
#   1. Storage failure is not fatal: the window falls back to an in-memory
#      SQLite database and logs why.
#   2. Widgets never talk to the database; everything goes through
#      PlannerService / TaskStore, which is what the tests exercise.
