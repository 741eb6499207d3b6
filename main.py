"""
Study Planner — tasks, a pomodoro timer, and progress stats.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path

faulthandler.enable()

# Ensure studyplanner is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication

from studyplanner.config import load_config
from studyplanner.ui.main_window import MainWindow
from studyplanner.ui.styles import stylesheet_for


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("study_planner.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Study Planner...")

    app = QApplication(sys.argv)
    app.setApplicationName("Study Planner")
    app.setOrganizationName("StudyPlanner")

    config = load_config()
    app.setStyleSheet(stylesheet_for(config["theme"]))

    window = MainWindow(config)
    window.show()

    logger.info("Application started.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The entry point. Sets up logging, creates the Qt application, applies
#   the theme from config/settings.json, and opens MainWindow.
#
# Key points:
#   - sys.path manipulation: imports work whether you run from the repo
#     root or another directory.
#   - QApplication must exist before any widget, and before TickService
#     creates its QTimer.
#   - app.exec(): the Qt event loop. Every tick and button click runs in it.
#
# Interviewer-friendly talking points:
#   1. Logging to both console and study_planner.log: console for
#      development, file for debugging user-reported issues.
