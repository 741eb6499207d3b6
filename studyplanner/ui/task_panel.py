"""
Task Panel — add, filter, search, complete, edit and delete tasks.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from PySide6.QtCore import QDate, Qt, QTimer, Signal, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QComboBox,
    QPushButton, QCheckBox, QDateEdit, QSpinBox, QListWidget, QListWidgetItem,
    QDialog, QDialogButtonBox, QFormLayout, QMessageBox, QButtonGroup,
)

from studyplanner.data.models import (
    DEFAULT_CATEGORY, MAX_POMODORO_TARGET, MIN_POMODORO_TARGET, PRIORITIES, Task,
)
from studyplanner.services.planner_service import PlannerService
from studyplanner.services.task_store import is_due_today, is_overdue

logger = logging.getLogger(__name__)

CATEGORIES = [DEFAULT_CATEGORY, "Study", "Homework", "Exam", "Project", "Personal"]


class DeadlineEdit(QWidget):
    """Optional date: a checkbox in front of a QDateEdit."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.enabled_cb = QCheckBox("Due")
        self.date_edit = QDateEdit()
        self.date_edit.setCalendarPopup(True)
        self.date_edit.setDisplayFormat("yyyy-MM-dd")
        self.date_edit.setDate(QDate.currentDate())
        self.date_edit.setEnabled(False)
        self.enabled_cb.toggled.connect(self.date_edit.setEnabled)
        layout.addWidget(self.enabled_cb)
        layout.addWidget(self.date_edit)

    def value(self) -> str:
        if not self.enabled_cb.isChecked():
            return ""
        return self.date_edit.date().toString("yyyy-MM-dd")

    def set_value(self, deadline: str) -> None:
        parsed = QDate.fromString(deadline, "yyyy-MM-dd") if deadline else QDate()
        self.enabled_cb.setChecked(parsed.isValid())
        self.date_edit.setDate(parsed if parsed.isValid() else QDate.currentDate())

    def clear(self) -> None:
        self.set_value("")


class TaskRow(QWidget):
    """One task in the list."""

    toggled = Signal(str, bool)
    edit_requested = Signal(str)
    delete_requested = Signal(str)
    focus_requested = Signal(str)

    def __init__(self, task: Task, today: date, bound: bool,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.task_id = task.id
        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 2, 6, 2)

        check = QCheckBox()
        check.setChecked(task.completed)
        check.toggled.connect(lambda v: self.toggled.emit(self.task_id, v))
        layout.addWidget(check)

        main = QVBoxLayout()
        title = QLabel(task.text)
        if task.completed:
            title.setStyleSheet("text-decoration: line-through; color: gray;")
        if bound:
            title.setText(f"{task.text}  (in focus)")
        main.addWidget(title)

        deadline_text = f"Deadline: {task.deadline}" if task.deadline else "No deadline"
        meta = QLabel(
            f"{task.category}  ·  {task.priority.capitalize()}  ·  {deadline_text}"
            f"  ·  {task.pomodoro_count}/{task.pomodoro_target} pomodoros"
        )
        meta.setObjectName("metric_label")
        if is_overdue(task, today):
            meta.setObjectName("overdue")
        elif is_due_today(task, today):
            meta.setText(meta.text() + "  (due today)")
        main.addWidget(meta)
        layout.addLayout(main, 1)

        focus_btn = QPushButton("Focus")
        focus_btn.setEnabled(not task.completed)
        focus_btn.clicked.connect(lambda: self.focus_requested.emit(self.task_id))
        layout.addWidget(focus_btn)

        edit_btn = QPushButton("Edit")
        edit_btn.clicked.connect(lambda: self.edit_requested.emit(self.task_id))
        layout.addWidget(edit_btn)

        del_btn = QPushButton("Delete")
        del_btn.setObjectName("danger")
        del_btn.clicked.connect(lambda: self.delete_requested.emit(self.task_id))
        layout.addWidget(del_btn)


class TaskEditDialog(QDialog):
    """Edit text, category, priority, deadline and pomodoro target."""

    def __init__(self, task: Task, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Edit task")
        self.setMinimumWidth(380)
        layout = QFormLayout(self)

        self.text_input = QLineEdit(task.text)
        layout.addRow("Task:", self.text_input)

        self.category_combo = QComboBox()
        self.category_combo.setEditable(True)
        self.category_combo.addItems(CATEGORIES)
        self.category_combo.setCurrentText(task.category)
        layout.addRow("Category:", self.category_combo)

        self.priority_combo = QComboBox()
        self.priority_combo.addItems(PRIORITIES)
        self.priority_combo.setCurrentText(task.priority)
        layout.addRow("Priority:", self.priority_combo)

        self.deadline_edit = DeadlineEdit()
        self.deadline_edit.set_value(task.deadline)
        layout.addRow("Deadline:", self.deadline_edit)

        self.target_spin = QSpinBox()
        self.target_spin.setRange(MIN_POMODORO_TARGET, MAX_POMODORO_TARGET)
        self.target_spin.setValue(task.pomodoro_target)
        layout.addRow("Pomodoros:", self.target_spin)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def fields(self) -> dict:
        return {
            "text": self.text_input.text(),
            "category": self.category_combo.currentText(),
            "priority": self.priority_combo.currentText(),
            "deadline": self.deadline_edit.value(),
            "pomodoro_target": self.target_spin.value(),
        }

    @Slot()
    def _on_accept(self) -> None:
        if not self.text_input.text().strip():
            QMessageBox.warning(self, "Missing Info", "Please enter a task description.")
            return
        self.accept()


class TaskPanel(QWidget):
    """The Tasks tab."""

    tasks_changed = Signal()
    focus_requested = Signal(str)

    def __init__(self, planner: PlannerService, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.planner = planner
        self.store = planner.store
        self.filter_mode = "all"
        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(10)
        layout.setContentsMargins(20, 16, 20, 16)

        # ── Add form ────────────────────────────────────────────────
        form = QHBoxLayout()
        self.text_input = QLineEdit()
        self.text_input.setPlaceholderText("What do you need to do?")
        self.text_input.returnPressed.connect(self._on_add)
        form.addWidget(self.text_input, 3)

        self.category_combo = QComboBox()
        self.category_combo.setEditable(True)
        self.category_combo.addItems(CATEGORIES)
        form.addWidget(self.category_combo, 1)

        self.priority_combo = QComboBox()
        self.priority_combo.addItems(PRIORITIES)
        self.priority_combo.setCurrentText("medium")
        form.addWidget(self.priority_combo)

        self.deadline_edit = DeadlineEdit()
        form.addWidget(self.deadline_edit)

        self.target_spin = QSpinBox()
        self.target_spin.setRange(MIN_POMODORO_TARGET, MAX_POMODORO_TARGET)
        self.target_spin.setToolTip("Pomodoro target")
        form.addWidget(self.target_spin)

        add_btn = QPushButton("Add")
        add_btn.setObjectName("primary")
        add_btn.clicked.connect(self._on_add)
        form.addWidget(add_btn)
        layout.addLayout(form)

        # ── Filters + search ────────────────────────────────────────
        filter_row = QHBoxLayout()
        self.filter_group = QButtonGroup(self)
        for mode in ("all", "active", "completed"):
            btn = QPushButton(mode.capitalize())
            btn.setCheckable(True)
            btn.setChecked(mode == self.filter_mode)
            btn.clicked.connect(lambda _=False, m=mode: self._set_filter(m))
            self.filter_group.addButton(btn)
            filter_row.addWidget(btn)

        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search tasks...")
        self.search_input.textChanged.connect(lambda _: self.refresh())
        filter_row.addWidget(self.search_input, 1)

        clear_btn = QPushButton("Clear Completed")
        clear_btn.clicked.connect(self._on_clear_completed)
        filter_row.addWidget(clear_btn)
        layout.addLayout(filter_row)

        # ── List ────────────────────────────────────────────────────
        self.list_widget = QListWidget()
        self.list_widget.setSelectionMode(QListWidget.SelectionMode.NoSelection)
        layout.addWidget(self.list_widget, 1)

        # ── Counts ──────────────────────────────────────────────────
        self.counts_label = QLabel("")
        self.counts_label.setObjectName("subtitle")
        layout.addWidget(self.counts_label)

    # ── Rendering ───────────────────────────────────────────────────────

    @Slot()
    def refresh(self) -> None:
        today = self.store.clock().date()
        bound_id = self.planner.engine.session.bound_task_id
        search = self.search_input.text()
        tasks = self.store.visible_tasks(self.filter_mode, search)

        self.list_widget.clear()
        if not tasks:
            msg = "No tasks match your search." if search.strip() else "No tasks to show yet."
            item = QListWidgetItem(msg)
            item.setFlags(Qt.ItemFlag.NoItemFlags)
            self.list_widget.addItem(item)
        for task in tasks:
            row = TaskRow(task, today, task.id == bound_id)
            row.toggled.connect(self._on_toggled)
            row.edit_requested.connect(self._on_edit)
            row.delete_requested.connect(self._on_delete)
            row.focus_requested.connect(self._on_focus)
            item = QListWidgetItem()
            item.setSizeHint(row.sizeHint())
            self.list_widget.addItem(item)
            self.list_widget.setItemWidget(item, row)

        c = self.store.counts(today)
        self.counts_label.setText(
            f"Total {c['total']}  ·  Active {c['active']}  ·  Completed {c['completed']}"
            f"  ·  Overdue {c['overdue']}  ·  Due today {c['due_today']}"
        )

    def _set_filter(self, mode: str) -> None:
        self.filter_mode = mode
        self.refresh()

    # ── Slots ───────────────────────────────────────────────────────────

    @Slot()
    def _on_add(self) -> None:
        text = self.text_input.text().strip()
        if not text:
            return
        self.store.add_task(
            text,
            category=self.category_combo.currentText(),
            priority=self.priority_combo.currentText(),
            deadline=self.deadline_edit.value(),
            pomodoro_target=self.target_spin.value(),
        )
        self.text_input.clear()
        self.priority_combo.setCurrentText("medium")
        self.deadline_edit.clear()
        self.target_spin.setValue(MIN_POMODORO_TARGET)
        self.text_input.setFocus()
        self._changed()

    @Slot(str, bool)
    def _on_toggled(self, task_id: str, completed: bool) -> None:
        self.planner.toggle_task(task_id, completed)
        self._changed()

    @Slot(str)
    def _on_edit(self, task_id: str) -> None:
        task = self.store.find_task(task_id)
        if task is None:
            return
        dialog = TaskEditDialog(task, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        self.store.update_task(task_id, **dialog.fields())
        self._changed()

    @Slot(str)
    def _on_focus(self, task_id: str) -> None:
        QTimer.singleShot(0, lambda: self.focus_requested.emit(task_id))

    @Slot(str)
    def _on_delete(self, task_id: str) -> None:
        self.planner.delete_task(task_id)
        self._changed()

    @Slot()
    def _on_clear_completed(self) -> None:
        removed = self.planner.clear_completed()
        if removed:
            logger.info("Cleared %d completed task(s).", len(removed))
            self._changed()

    def _changed(self) -> None:
        # rows are rebuilt on refresh; let the emitting row finish first
        QTimer.singleShot(0, self.refresh)
        self.tasks_changed.emit()
