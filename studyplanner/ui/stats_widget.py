"""
Stats Widget — today / this week / all time cards for completed tasks and
pomodoros.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QFrame, QSizePolicy,
)

from studyplanner.data.models import StatsCounters
from studyplanner.services.stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)


class MetricCard(QFrame):
    """Value on top, small label underneath."""

    def __init__(self, label: str, tooltip: str = "",
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumWidth(140)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setFixedHeight(84)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        if tooltip:
            self.setToolTip(tooltip)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 10, 14, 8)
        layout.setSpacing(2)

        self.value_label = QLabel("0")
        self.value_label.setObjectName("metric_value")
        self.name_label = QLabel(label.lower())
        self.name_label.setObjectName("metric_label")

        layout.addWidget(self.value_label)
        layout.addWidget(self.name_label)

    def set_value(self, value: int) -> None:
        self.value_label.setText(str(value))


class StatsWidget(QWidget):
    """The Stats tab."""

    def __init__(self, stats: StatsAggregator, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.stats = stats
        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        title = QLabel("Your Progress")
        title.setObjectName("title")
        layout.addWidget(title)

        grid = QGridLayout()
        grid.setSpacing(12)
        self.cards = {}
        periods = [
            ("today", "Today"),
            ("week", "This week"),
            ("total", "All time"),
        ]
        for col, (key, heading) in enumerate(periods):
            header = QLabel(heading)
            header.setObjectName("subtitle")
            grid.addWidget(header, 0, col)
            tasks_card = MetricCard("tasks completed")
            pomo_card = MetricCard(
                "pomodoros", tooltip="Completed focus sessions. Breaks are not counted."
            )
            grid.addWidget(tasks_card, 1, col)
            grid.addWidget(pomo_card, 2, col)
            self.cards[key] = (tasks_card, pomo_card)
        layout.addLayout(grid)

        footer = QHBoxLayout()
        self.period_label = QLabel("")
        self.period_label.setObjectName("metric_label")
        footer.addWidget(self.period_label)
        footer.addStretch()
        layout.addLayout(footer)
        layout.addStretch()

    def _show(self, key: str, counters: StatsCounters) -> None:
        tasks_card, pomo_card = self.cards[key]
        tasks_card.set_value(counters.completed_tasks)
        pomo_card.set_value(counters.pomodoros)

    @Slot()
    def refresh(self) -> None:
        snap = self.stats.read()
        self._show("today", snap.daily)
        self._show("week", self.stats.this_week())
        self._show("total", snap.total)
        self.period_label.setText(f"{snap.last_date}  ·  week {snap.last_week_key}")
