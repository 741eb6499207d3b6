"""
App settings — timer lengths, tick rate, theme and sound.

Stored as JSON next to the repo. Missing keys fall back to DEFAULT_CONFIG,
a broken file falls back to DEFAULT_CONFIG entirely.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from studyplanner.services.timer_engine import TimerDurations

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.json"

MIN_MINUTES = 1
MAX_MINUTES = 180
THEMES = ("light", "dark")

DEFAULT_CONFIG: Dict[str, Any] = {
    "focus_minutes": 25,
    "short_break_minutes": 5,
    "long_break_minutes": 15,
    "long_break_every": 4,
    "tick_interval_ms": 250,
    "theme": "light",
    "sound_enabled": True,
    "volume": 0.5,
}


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or CONFIG_PATH
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                cfg = json.load(f)
            if not isinstance(cfg, dict):
                raise ValueError("settings file is not a JSON object")
            merged = DEFAULT_CONFIG.copy()
            merged.update({k: v for k, v in cfg.items() if k in DEFAULT_CONFIG})
            if merged["theme"] not in THEMES:
                merged["theme"] = DEFAULT_CONFIG["theme"]
            return merged
        except (OSError, ValueError) as e:
            logger.warning("Bad settings file %s, using defaults: %s", path, e)
    return DEFAULT_CONFIG.copy()


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        logger.error("Could not save settings to %s: %s", path, e)


def reset_config(path: Optional[Path] = None) -> Dict[str, Any]:
    config = DEFAULT_CONFIG.copy()
    save_config(config, path)
    return config


def _minutes(config: Dict[str, Any], key: str) -> int:
    try:
        value = int(config.get(key, DEFAULT_CONFIG[key]))
    except (TypeError, ValueError):
        value = DEFAULT_CONFIG[key]
    return max(MIN_MINUTES, min(value, MAX_MINUTES))


def durations_from_config(config: Dict[str, Any]) -> TimerDurations:
    try:
        every = max(1, int(config.get("long_break_every", 4)))
    except (TypeError, ValueError):
        every = DEFAULT_CONFIG["long_break_every"]
    return TimerDurations(
        focus=_minutes(config, "focus_minutes") * 60,
        short_break=_minutes(config, "short_break_minutes") * 60,
        long_break=_minutes(config, "long_break_minutes") * 60,
        long_break_every=every,
    )
