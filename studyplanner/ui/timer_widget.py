"""
Timer Widget — phase, countdown, and the session controls.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QMessageBox, QProgressBar, QButtonGroup,
)

from studyplanner.services.planner_service import PlannerService
from studyplanner.services.tick_service import TickService
from studyplanner.services.timer_engine import EngineSnapshot, Phase, TimerStatus

logger = logging.getLogger(__name__)


class TimerWidget(QWidget):
    """The Timer tab. All state lives in the engine; this only renders it."""

    session_changed = Signal()
    session_started = Signal()

    def __init__(self, planner: PlannerService, ticker: TickService,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.planner = planner
        self.engine = planner.engine
        self.ticker = ticker
        self._build_ui()
        self.render(self.engine.snapshot())

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(14)
        layout.setContentsMargins(24, 24, 24, 24)

        # ── Phase selector ──────────────────────────────────────────
        phase_row = QHBoxLayout()
        self.phase_group = QButtonGroup(self)
        self.phase_buttons = {}
        for phase in Phase:
            btn = QPushButton(phase.title)
            btn.setCheckable(True)
            btn.clicked.connect(lambda _=False, p=phase: self._on_set_phase(p))
            self.phase_group.addButton(btn)
            self.phase_buttons[phase] = btn
            phase_row.addWidget(btn)
        layout.addLayout(phase_row)

        # ── Display ─────────────────────────────────────────────────
        self.state_label = QLabel("")
        self.state_label.setObjectName("state_label")
        self.state_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.state_label)

        self.timer_label = QLabel("25:00")
        self.timer_label.setObjectName("timer")
        self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.timer_label)

        self.progress = QProgressBar()
        self.progress.setTextVisible(False)
        layout.addWidget(self.progress)

        self.task_label = QLabel("")
        self.task_label.setObjectName("subtitle")
        self.task_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.task_label)

        self.cycles_label = QLabel("")
        self.cycles_label.setObjectName("metric_label")
        self.cycles_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.cycles_label)

        # ── Free-text session ───────────────────────────────────────
        label_row = QHBoxLayout()
        self.label_input = QLineEdit()
        self.label_input.setPlaceholderText("Session title (when no task is picked)")
        label_row.addWidget(self.label_input, 1)
        self.btn_new = QPushButton("New Session")
        self.btn_new.setObjectName("primary")
        self.btn_new.clicked.connect(self._on_new_session)
        label_row.addWidget(self.btn_new)
        layout.addLayout(label_row)

        # ── Controls ────────────────────────────────────────────────
        btn_row = QHBoxLayout()
        self.btn_start = QPushButton("Start")
        self.btn_start.setObjectName("success")
        self.btn_start.setMinimumHeight(44)
        self.btn_start.clicked.connect(self._on_start)
        btn_row.addWidget(self.btn_start)

        self.btn_pause = QPushButton("Pause")
        self.btn_pause.setMinimumHeight(44)
        self.btn_pause.clicked.connect(self._on_pause)
        btn_row.addWidget(self.btn_pause)

        self.btn_reset = QPushButton("Reset")
        self.btn_reset.setObjectName("danger")
        self.btn_reset.setMinimumHeight(44)
        self.btn_reset.clicked.connect(self._on_reset)
        btn_row.addWidget(self.btn_reset)
        layout.addLayout(btn_row)

        layout.addStretch()

    # ── Rendering ───────────────────────────────────────────────────────

    @Slot(object)
    def render(self, snap: EngineSnapshot) -> None:
        self.timer_label.setText(snap.display())
        status = {
            TimerStatus.IDLE: "Ready",
            TimerStatus.RUNNING: "Running",
            TimerStatus.PAUSED: "Paused",
        }[snap.status]
        self.state_label.setText(f"{snap.phase.title} · {status}")
        self.phase_buttons[snap.phase].setChecked(True)

        self.progress.setMaximum(snap.duration_seconds)
        self.progress.setValue(snap.duration_seconds - snap.remaining_seconds)

        bound = snap.bound_task_id is not None or bool(snap.label)
        self.task_label.setText(self.planner.bound_task_title() if bound else "")
        self.cycles_label.setText(f"Focus sessions this run: {snap.focus_cycles_completed}")

        self.btn_start.setEnabled(not snap.is_running)
        self.btn_start.setText("Start" if snap.status == TimerStatus.IDLE else "Resume")
        self.btn_pause.setEnabled(snap.is_running)

    # ── Actions ─────────────────────────────────────────────────────────

    def start_for_task(self, task_id: Optional[str], label: str = "") -> bool:
        started = self.engine.start_session(
            task_id=task_id, label=label, confirm=self._confirm_overwrite
        )
        if started:
            self.label_input.clear()
            self._after_change()
            self.session_started.emit()
        return started

    def _confirm_overwrite(self) -> bool:
        reply = QMessageBox.question(
            self, "Replace Session",
            f"A session is already set up ({self.planner.bound_task_title()}).\n\n"
            "Start a new one and discard its progress?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return reply == QMessageBox.StandardButton.Yes

    @Slot()
    def _on_new_session(self) -> None:
        self.start_for_task(None, self.label_input.text())

    @Slot()
    def _on_start(self) -> None:
        self.engine.resume()
        self._after_change()

    @Slot()
    def _on_pause(self) -> None:
        self.engine.pause()
        self._after_change()

    @Slot()
    def _on_reset(self) -> None:
        self.engine.reset()
        self._after_change()

    def _on_set_phase(self, phase: Phase) -> None:
        if phase is self.engine.session.phase and not self.engine.session.is_running:
            return
        self.engine.set_phase(phase)
        self._after_change()

    def _after_change(self) -> None:
        self.ticker.sync()
        self.session_changed.emit()
