"""
Light and dark stylesheets for the whole application.
Catppuccin Latte / Mocha palettes.
"""

from __future__ import annotations

from typing import Dict

DARK_PALETTE: Dict[str, str] = {
    "base": "#1e1e2e",
    "mantle": "#181825",
    "surface": "#313244",
    "overlay": "#45475a",
    "border": "#585b70",
    "text": "#cdd6f4",
    "subtext": "#a6adc8",
    "accent": "#89b4fa",
    "accent_hover": "#74c7ec",
    "red": "#f38ba8",
    "green": "#a6e3a1",
    "yellow": "#f9e2af",
    "mauve": "#cba6f7",
}

LIGHT_PALETTE: Dict[str, str] = {
    "base": "#eff1f5",
    "mantle": "#e6e9ef",
    "surface": "#ccd0da",
    "overlay": "#bcc0cc",
    "border": "#9ca0b0",
    "text": "#4c4f69",
    "subtext": "#6c6f85",
    "accent": "#1e66f5",
    "accent_hover": "#209fb5",
    "red": "#d20f39",
    "green": "#40a02b",
    "yellow": "#df8e1d",
    "mauve": "#8839ef",
}

_TEMPLATE = """
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {
    background-color: %(base)s;
    color: %(text)s;
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {
    background-color: %(surface)s;
    color: %(text)s;
    border: 1px solid %(border)s;
    border-radius: 8px;
    padding: 6px 16px;
    font-weight: 600;
    min-height: 22px;
}

QPushButton:hover {
    background-color: %(overlay)s;
    border-color: %(accent)s;
}

QPushButton:checked {
    background-color: %(accent)s;
    color: %(base)s;
    border: none;
}

QPushButton:disabled {
    background-color: %(mantle)s;
    color: %(border)s;
    border-color: %(surface)s;
}

QPushButton#primary {
    background-color: %(accent)s;
    color: %(base)s;
    border: none;
}

QPushButton#primary:hover {
    background-color: %(accent_hover)s;
}

QPushButton#danger {
    background-color: %(red)s;
    color: %(base)s;
    border: none;
}

QPushButton#success {
    background-color: %(green)s;
    color: %(base)s;
    border: none;
}

/* ── Inputs ──────────────────────────────────────────────────────── */
QLineEdit, QComboBox, QSpinBox, QDateEdit {
    background-color: %(surface)s;
    color: %(text)s;
    border: 1px solid %(border)s;
    border-radius: 6px;
    padding: 5px 8px;
    selection-background-color: %(accent)s;
    selection-color: %(base)s;
}

QLineEdit:focus {
    border-color: %(accent)s;
}

QComboBox QAbstractItemView {
    background-color: %(surface)s;
    color: %(text)s;
    selection-background-color: %(overlay)s;
}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel {
    background: transparent;
    color: %(text)s;
}

QLabel#title {
    font-size: 22px;
    font-weight: 700;
    color: %(accent)s;
}

QLabel#subtitle {
    font-size: 14px;
    color: %(subtext)s;
}

QLabel#metric_value {
    font-size: 28px;
    font-weight: 700;
    color: %(green)s;
}

QLabel#metric_label {
    font-size: 11px;
    color: %(subtext)s;
}

QLabel#timer {
    font-size: 56px;
    font-weight: 700;
    font-family: "Consolas", "Courier New", monospace;
    color: %(yellow)s;
}

QLabel#state_label {
    font-size: 15px;
    font-weight: 600;
    color: %(mauve)s;
}

QLabel#overdue {
    color: %(red)s;
}

/* ── Lists / tabs ────────────────────────────────────────────────── */
QListWidget {
    background-color: %(mantle)s;
    border: 1px solid %(surface)s;
    border-radius: 8px;
}

QListWidget::item {
    padding: 6px;
    border-bottom: 1px solid %(surface)s;
}

QListWidget::item:selected {
    background-color: %(overlay)s;
    color: %(text)s;
}

QTabWidget::pane {
    border: 1px solid %(surface)s;
    border-radius: 8px;
}

QTabBar::tab {
    background-color: %(mantle)s;
    color: %(subtext)s;
    padding: 10px 20px;
    margin-right: 2px;
    border-top-left-radius: 8px;
    border-top-right-radius: 8px;
    font-weight: 600;
}

QTabBar::tab:selected {
    background-color: %(base)s;
    color: %(accent)s;
    border-bottom: 2px solid %(accent)s;
}

/* ── Group Box ───────────────────────────────────────────────────── */
QGroupBox {
    border: 1px solid %(surface)s;
    border-radius: 8px;
    margin-top: 12px;
    padding-top: 16px;
    font-weight: 600;
}

QGroupBox::title {
    subcontrol-origin: margin;
    left: 12px;
    padding: 0 6px;
    color: %(accent)s;
}

/* ── CheckBox / slider / progress ────────────────────────────────── */
QCheckBox {
    spacing: 8px;
}

QSlider::groove:horizontal {
    height: 6px;
    background-color: %(surface)s;
    border-radius: 3px;
}

QSlider::handle:horizontal {
    width: 16px;
    height: 16px;
    margin: -5px 0;
    background-color: %(accent)s;
    border-radius: 8px;
}

QProgressBar {
    background-color: %(surface)s;
    border-radius: 4px;
    text-align: center;
    color: %(text)s;
    height: 12px;
}

QProgressBar::chunk {
    background-color: %(accent)s;
    border-radius: 4px;
}
"""

DARK_STYLESHEET = _TEMPLATE % DARK_PALETTE
LIGHT_STYLESHEET = _TEMPLATE % LIGHT_PALETTE


def stylesheet_for(theme: str) -> str:
    return DARK_STYLESHEET if theme == "dark" else LIGHT_STYLESHEET


def palette_for(theme: str) -> Dict[str, str]:
    return DARK_PALETTE if theme == "dark" else LIGHT_PALETTE
