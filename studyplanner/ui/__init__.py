from .main_window import MainWindow
from .settings_widget import SettingsWidget
from .stats_widget import StatsWidget
from .task_panel import TaskPanel
from .timer_widget import TimerWidget

__all__ = ["MainWindow", "SettingsWidget", "StatsWidget", "TaskPanel", "TimerWidget"]
