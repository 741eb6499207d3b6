"""
Sound Manager — short chimes for phase changes.

Uses pygame.mixer. The chimes are synthesized on first run and cached as WAV
files, so the repo ships no audio assets.
"""

from __future__ import annotations

import logging
import math
import struct
import wave
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List

import pygame.mixer

logger = logging.getLogger(__name__)

SOUNDS_DIR = Path(__file__).resolve().parent.parent / "assets" / "sounds"
SAMPLE_RATE = 22050


class SoundManager:
    """Plays named chimes with volume control and an on/off switch."""

    def __init__(self, enabled: bool = True, volume: float = 0.5) -> None:
        self.enabled = enabled
        self.volume = max(0.0, min(volume, 1.0))
        self._initialized = False
        self._sounds: Dict[str, "pygame.mixer.Sound"] = {}

        if enabled:
            self._init_mixer()

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
        except pygame.error as e:
            # no audio device (CI, headless box); stay silent
            logger.warning("Could not init audio: %s", e)
            return
        self._initialized = True
        self._generate_sounds()
        logger.info("Sound manager initialized.")

    def _generate_sounds(self) -> None:
        SOUNDS_DIR.mkdir(parents=True, exist_ok=True)

        sound_specs: Dict[str, Callable[[], bytes]] = {
            "session_start": self._gen_start,
            "focus_complete": self._gen_focus_done,
            "break_complete": self._gen_break_done,
        }

        for name, gen_func in sound_specs.items():
            path = SOUNDS_DIR / f"{name}.wav"
            if not path.exists():
                path.write_bytes(gen_func())
            try:
                self._sounds[name] = pygame.mixer.Sound(str(path))
                self._sounds[name].set_volume(self.volume)
            except pygame.error as e:
                logger.warning("Could not load sound %s: %s", name, e)

    def play(self, sound_name: str) -> None:
        if not self.enabled or not self._initialized:
            return
        sound = self._sounds.get(sound_name)
        if sound:
            sound.set_volume(self.volume)
            sound.play()

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(volume, 1.0))
        for s in self._sounds.values():
            s.set_volume(self.volume)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled and not self._initialized:
            self._init_mixer()

    # ── Sound generators ────────────────────────────────────────────────────

    @staticmethod
    def _make_wav(samples: List[float], sample_rate: int = SAMPLE_RATE) -> bytes:
        buf = BytesIO()
        with wave.open(buf, "wb") as w:
            w.setnchannels(1)
            w.setsampwidth(2)
            w.setframerate(sample_rate)
            w.writeframes(b"".join(struct.pack("<h", int(s)) for s in samples))
        return buf.getvalue()

    @classmethod
    def _tones(cls, freqs: List[int], note_sec: float, peak: float) -> bytes:
        samples: List[float] = []
        for freq in freqs:
            dur = int(SAMPLE_RATE * note_sec)
            for t in range(dur):
                amp = peak * (1 - t / dur)
                samples.append(amp * math.sin(2 * math.pi * freq * t / SAMPLE_RATE))
        return cls._make_wav(samples)

    @classmethod
    def _gen_start(cls) -> bytes:
        """Single soft pop."""
        samples = []
        for t in range(int(SAMPLE_RATE * 0.1)):
            amp = 10000 * math.exp(-t / (SAMPLE_RATE * 0.03))
            freq = 600 + (300 * t / (SAMPLE_RATE * 0.1))
            samples.append(amp * math.sin(2 * math.pi * freq * t / SAMPLE_RATE))
        return cls._make_wav(samples)

    @classmethod
    def _gen_focus_done(cls) -> bytes:
        return cls._tones([523, 659, 784, 1047], 0.12, 7000)  # C5 E5 G5 C6

    @classmethod
    def _gen_break_done(cls) -> bytes:
        return cls._tones([784, 659, 523], 0.1, 8000)  # G5 E5 C5
