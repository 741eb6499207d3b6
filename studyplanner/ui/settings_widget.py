"""
Settings Panel — timer lengths, theme, sound, export / import, data reset.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QCheckBox, QComboBox,
    QSlider, QPushButton, QGroupBox, QSpinBox, QMessageBox, QFileDialog,
    QGridLayout, QScrollArea,
)

from studyplanner.config import (
    DEFAULT_CONFIG, MAX_MINUTES, MIN_MINUTES, THEMES, durations_from_config,
)
from studyplanner.audio.sound_manager import SoundManager
from studyplanner.services.planner_service import PlannerService
from studyplanner.services.snapshot_service import SnapshotFormatError

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "study_planner_backup.json"


class SettingsWidget(QWidget):
    """Settings panel for the app."""

    settings_changed = Signal()
    theme_changed = Signal(str)
    data_replaced = Signal()

    def __init__(
        self,
        config: Dict[str, Any],
        planner: PlannerService,
        sound_manager: SoundManager,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.config = config
        self.planner = planner
        self.sound = sound_manager
        self._setup_ui()

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        outer.addWidget(scroll)

        content = QWidget()
        layout = QVBoxLayout(content)
        layout.setSpacing(12)
        layout.setContentsMargins(20, 16, 20, 20)

        title = QLabel("Settings")
        title.setObjectName("title")
        layout.addWidget(title)

        # ── Timer lengths ───────────────────────────────────────────────
        timer_group = QGroupBox("Timer (minutes)")
        timer_layout = QGridLayout(timer_group)
        timer_layout.setColumnStretch(4, 1)

        self.spins: Dict[str, QSpinBox] = {}
        rows = [
            ("focus_minutes", "Focus:"),
            ("short_break_minutes", "Short break:"),
            ("long_break_minutes", "Long break:"),
        ]
        for i, (key, text) in enumerate(rows):
            timer_layout.addWidget(QLabel(text), i, 0)
            spin = QSpinBox()
            spin.setRange(MIN_MINUTES, MAX_MINUTES)
            spin.setValue(int(self.config.get(key, DEFAULT_CONFIG[key])))
            spin.setFixedWidth(70)
            spin.valueChanged.connect(lambda v, k=key: self._on_timer_changed(k, v))
            timer_layout.addWidget(spin, i, 1)
            self.spins[key] = spin

        timer_layout.addWidget(QLabel("  Long break every:"), 0, 2)
        every = QSpinBox()
        every.setRange(1, 12)
        every.setValue(int(self.config.get("long_break_every", 4)))
        every.setSuffix(" focus")
        every.valueChanged.connect(lambda v: self._on_timer_changed("long_break_every", v))
        timer_layout.addWidget(every, 0, 3)
        self.spins["long_break_every"] = every

        note = QLabel("A running phase keeps its length; changes apply to the next one.")
        note.setObjectName("metric_label")
        timer_layout.addWidget(note, len(rows), 0, 1, 5)
        layout.addWidget(timer_group)

        # ── Appearance + sound (side by side) ───────────────────────────
        top_row = QHBoxLayout()
        top_row.setSpacing(12)

        theme_group = QGroupBox("Appearance")
        theme_layout = QHBoxLayout(theme_group)
        theme_layout.addWidget(QLabel("Theme:"))
        self.theme_combo = QComboBox()
        self.theme_combo.addItems([t.capitalize() for t in THEMES])
        self.theme_combo.setCurrentIndex(THEMES.index(self.config.get("theme", "light")))
        self.theme_combo.currentIndexChanged.connect(self._on_theme_changed)
        theme_layout.addWidget(self.theme_combo)
        theme_layout.addStretch()
        top_row.addWidget(theme_group, 1)

        sound_group = QGroupBox("Sound")
        sound_layout = QHBoxLayout(sound_group)
        sound_layout.setContentsMargins(10, 8, 10, 8)

        self.cb_sound = QCheckBox("Enabled")
        self.cb_sound.setChecked(self.sound.enabled)
        self.cb_sound.toggled.connect(self._on_sound_toggled)
        sound_layout.addWidget(self.cb_sound)

        sound_layout.addWidget(QLabel("Vol:"))
        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setMinimum(0)
        self.volume_slider.setMaximum(100)
        self.volume_slider.setValue(int(self.sound.volume * 100))
        self.volume_slider.valueChanged.connect(self._on_volume_changed)
        sound_layout.addWidget(self.volume_slider)

        self.vol_label = QLabel(f"{int(self.sound.volume * 100)}%")
        sound_layout.addWidget(self.vol_label)
        top_row.addWidget(sound_group, 1)
        layout.addLayout(top_row)

        # ── Data Management ─────────────────────────────────────────────
        data_group = QGroupBox("Data Management")
        btn_row = QHBoxLayout(data_group)

        export_btn = QPushButton("Export Data")
        export_btn.setFixedHeight(30)
        export_btn.clicked.connect(self._export_data)
        btn_row.addWidget(export_btn)

        import_btn = QPushButton("Import Data")
        import_btn.setFixedHeight(30)
        import_btn.clicked.connect(self._import_data)
        btn_row.addWidget(import_btn)

        btn_row.addStretch()

        reset_btn = QPushButton("Reset All Data")
        reset_btn.setObjectName("danger")
        reset_btn.setFixedHeight(30)
        reset_btn.clicked.connect(self._reset_data)
        btn_row.addWidget(reset_btn)
        layout.addWidget(data_group)

        layout.addStretch()
        scroll.setWidget(content)

    # ── Slots ───────────────────────────────────────────────────────────────

    def _on_timer_changed(self, key: str, value: int) -> None:
        self.config[key] = value
        self.planner.engine.update_durations(durations_from_config(self.config))
        self.settings_changed.emit()

    @Slot(int)
    def _on_theme_changed(self, index: int) -> None:
        self.config["theme"] = THEMES[index]
        self.theme_changed.emit(THEMES[index])
        self.settings_changed.emit()

    @Slot(bool)
    def _on_sound_toggled(self, enabled: bool) -> None:
        self.config["sound_enabled"] = enabled
        self.sound.set_enabled(enabled)

    @Slot(int)
    def _on_volume_changed(self, value: int) -> None:
        vol = value / 100.0
        self.vol_label.setText(f"{value}%")
        self.config["volume"] = vol
        self.sound.set_volume(vol)

    @Slot()
    def _export_data(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Data", EXPORT_FILE_NAME, "JSON files (*.json)"
        )
        if not path:
            return
        try:
            self.planner.export_to_file(Path(path))
        except OSError as e:
            QMessageBox.warning(self, "Export", f"Could not write {path}:\n{e}")
            return
        QMessageBox.information(self, "Export", f"Data exported to {path}")

    @Slot()
    def _import_data(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Import Data", "", "JSON files (*.json)"
        )
        if not path:
            return
        reply = QMessageBox.warning(
            self, "Import Data",
            "Importing replaces ALL current tasks and statistics.\n\nContinue?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            self.planner.import_from_file(Path(path))
        except SnapshotFormatError as e:
            QMessageBox.warning(self, "Import", str(e))
            return
        QMessageBox.information(self, "Import", "Data imported.")
        self.data_replaced.emit()

    @Slot()
    def _reset_data(self) -> None:
        reply = QMessageBox.warning(
            self, "Reset All Data",
            "This will permanently delete ALL tasks and statistics.\n"
            "This action cannot be undone.\n\nAre you sure?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.planner.reset_all()
            QMessageBox.information(self, "Reset", "All data has been reset.")
            self.data_replaced.emit()
