"""
Timer Engine — the focus / break phase state machine.

Owns the one TimerSession. The countdown is anchored to an absolute
deadline: every tick recomputes the remaining time from the wall clock, so a
process that was suspended (laptop asleep, window throttled) wakes up with
the right number on screen, or expires on its very next tick.

No Qt in here. TickService drives tick() from a QTimer; tests drive it with
explicit `now` values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

_ONE_SECOND_US = 1_000_000


class Phase(Enum):
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def title(self) -> str:
        return {
            Phase.FOCUS: "Focus",
            Phase.SHORT_BREAK: "Short Break",
            Phase.LONG_BREAK: "Long Break",
        }[self]


class TimerStatus(Enum):
    """Run state of the current phase."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class TimerDurations:
    """Phase lengths in seconds."""
    focus: int = 25 * 60
    short_break: int = 5 * 60
    long_break: int = 15 * 60
    long_break_every: int = 4

    def __post_init__(self) -> None:
        if min(self.focus, self.short_break, self.long_break) <= 0:
            raise ValueError("Phase durations must be positive.")
        if self.long_break_every <= 0:
            raise ValueError("long_break_every must be positive.")

    def for_phase(self, phase: Phase) -> int:
        if phase is Phase.FOCUS:
            return self.focus
        if phase is Phase.SHORT_BREAK:
            return self.short_break
        return self.long_break


@dataclass
class TimerSession:
    phase: Phase
    duration_seconds: int
    remaining_seconds: int
    status: TimerStatus = TimerStatus.IDLE
    deadline: Optional[datetime] = None
    focus_cycles_completed: int = 0
    bound_task_id: Optional[str] = None
    label: str = ""

    @property
    def is_running(self) -> bool:
        return self.status is TimerStatus.RUNNING


@dataclass(frozen=True)
class EngineSnapshot:
    phase: Phase
    status: TimerStatus
    duration_seconds: int
    remaining_seconds: int
    focus_cycles_completed: int
    bound_task_id: Optional[str]
    label: str

    @property
    def is_running(self) -> bool:
        return self.status is TimerStatus.RUNNING

    def display(self) -> str:
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class PhaseExpired:
    phase: Phase
    task_id: Optional[str]
    label: str
    expired_at: datetime


@dataclass(frozen=True)
class FocusCompleted:
    task_id: Optional[str]
    label: str
    completed_at: datetime
    cycle: int


class TimerEngine:
    """
    Phase engine for the single timer session.

    Invalid operations for the current state are silent no-ops. Completion
    is reported through the optional callbacks:
        on_phase_expired(PhaseExpired)     every expiry, focus or break
        on_focus_completed(FocusCompleted) only when a Focus phase ends
    """

    def __init__(
        self,
        durations: Optional[TimerDurations] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_phase_expired: Optional[Callable[[PhaseExpired], None]] = None,
        on_focus_completed: Optional[Callable[[FocusCompleted], None]] = None,
    ) -> None:
        self.durations = durations or TimerDurations()
        self.clock = clock
        self.on_phase_expired = on_phase_expired
        self.on_focus_completed = on_focus_completed
        self.session = TimerSession(
            phase=Phase.FOCUS,
            duration_seconds=self.durations.focus,
            remaining_seconds=self.durations.focus,
        )

    # ── Queries ─────────────────────────────────────────────────────────────

    def snapshot(self, now: Optional[datetime] = None) -> EngineSnapshot:
        s = self.session
        remaining = s.remaining_seconds
        if s.is_running:
            remaining = self._remaining_at(self._now(now))
        return EngineSnapshot(
            phase=s.phase,
            status=s.status,
            duration_seconds=s.duration_seconds,
            remaining_seconds=remaining,
            focus_cycles_completed=s.focus_cycles_completed,
            bound_task_id=s.bound_task_id,
            label=s.label,
        )

    def needs_confirmation(self) -> bool:
        """True when starting a new session would throw away the current one."""
        s = self.session
        return (
            s.status is not TimerStatus.IDLE
            or s.bound_task_id is not None
            or bool(s.label)
            or s.phase is not Phase.FOCUS
            or s.duration_seconds != self.durations.focus
        )

    # ── Session lifecycle ───────────────────────────────────────────────────

    def start_session(
        self,
        task_id: Optional[str] = None,
        label: str = "",
        confirm: Optional[Callable[[], bool]] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Begin a fresh Focus phase bound to `task_id` (or titled `label`).

        Overwriting a touched session asks `confirm` exactly once; no callback
        or a False answer leaves everything as it was.
        """
        if self.needs_confirmation():
            if confirm is None or not confirm():
                logger.info("Session start declined; keeping current session.")
                return False
        now = self._now(now)
        s = self.session
        s.deadline = None
        self._arm(Phase.FOCUS)
        s.bound_task_id = task_id or None
        s.label = (label or "").strip()
        self._run(now)
        logger.info("Session started (task=%s, label=%r)", s.bound_task_id, s.label)
        return True

    def resume(self, now: Optional[datetime] = None) -> None:
        s = self.session
        if s.is_running:
            return
        if s.remaining_seconds <= 0:
            s.remaining_seconds = s.duration_seconds
        self._run(self._now(now))

    def pause(self, now: Optional[datetime] = None) -> None:
        s = self.session
        if not s.is_running:
            return
        s.remaining_seconds = self._remaining_at(self._now(now))
        s.deadline = None
        s.status = TimerStatus.PAUSED

    def reset(self, now: Optional[datetime] = None) -> None:
        """Back to an idle Focus phase. The cycle count is kept."""
        self.pause(now)
        s = self.session
        self._arm(Phase.FOCUS)
        s.bound_task_id = None
        s.label = ""

    def set_phase(self, phase: Phase, now: Optional[datetime] = None) -> None:
        """Manual mode switch: stop and load the full duration of `phase`."""
        self.pause(now)
        self._arm(phase)

    def update_durations(self, durations: TimerDurations) -> None:
        """New lengths apply now to an idle phase, otherwise from the next phase."""
        self.durations = durations
        s = self.session
        if s.status is TimerStatus.IDLE:
            self._arm(s.phase)

    # ── Ticking ─────────────────────────────────────────────────────────────

    def tick(self, now: Optional[datetime] = None) -> Optional[PhaseExpired]:
        """
        Recompute the countdown from the deadline.

        Returns the PhaseExpired event on the tick that ends a phase, None
        otherwise. Missed ticks do not matter: a late tick sees a deadline in
        the past and expires at once.
        """
        s = self.session
        if not s.is_running:
            return None
        now = self._now(now)
        s.remaining_seconds = self._remaining_at(now)
        if s.remaining_seconds > 0:
            return None
        return self._expire(now)

    # ── Task binding ────────────────────────────────────────────────────────

    def on_task_deleted(self, task_id: str) -> None:
        if self.session.bound_task_id == task_id:
            self.session.bound_task_id = None

    def on_tasks_bulk_replaced(self, task_ids: Iterable[str]) -> None:
        bound = self.session.bound_task_id
        if bound is not None and bound not in set(task_ids):
            self.session.bound_task_id = None

    def clear_binding_if_missing(self, find_task: Callable[[str], object]) -> None:
        bound = self.session.bound_task_id
        if bound is not None and find_task(bound) is None:
            self.session.bound_task_id = None

    # ── Internal ────────────────────────────────────────────────────────────

    def _expire(self, now: datetime) -> PhaseExpired:
        s = self.session
        ended = s.phase
        # a late tick (suspended machine) still dates the end to the deadline
        ended_at = min(now, s.deadline) if s.deadline is not None else now
        s.status = TimerStatus.IDLE
        s.deadline = None
        s.remaining_seconds = 0

        event = PhaseExpired(ended, s.bound_task_id, s.label, ended_at)
        logger.info("%s phase expired.", ended.title)
        if self.on_phase_expired:
            self.on_phase_expired(event)

        if ended is Phase.FOCUS:
            s.focus_cycles_completed += 1
            if self.on_focus_completed:
                self.on_focus_completed(FocusCompleted(
                    task_id=s.bound_task_id,
                    label=s.label,
                    completed_at=ended_at,
                    cycle=s.focus_cycles_completed,
                ))
            if s.focus_cycles_completed % self.durations.long_break_every == 0:
                self._arm(Phase.LONG_BREAK)
            else:
                self._arm(Phase.SHORT_BREAK)
            self._run(now)
        else:
            self._arm(Phase.FOCUS)
        return event

    def _arm(self, phase: Phase) -> None:
        s = self.session
        s.phase = phase
        s.duration_seconds = self.durations.for_phase(phase)
        s.remaining_seconds = s.duration_seconds
        s.status = TimerStatus.IDLE

    def _run(self, now: datetime) -> None:
        s = self.session
        s.deadline = now + timedelta(seconds=s.remaining_seconds)
        s.status = TimerStatus.RUNNING

    def _remaining_at(self, now: datetime) -> int:
        deadline = self.session.deadline
        if deadline is None:
            return self.session.remaining_seconds
        left_us = (deadline - now) // timedelta(microseconds=1)
        if left_us <= 0:
            return 0
        # ceiling division on whole microseconds
        return min(-(-left_us // _ONE_SECOND_US), self.session.duration_seconds)

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.clock()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The pomodoro state machine: Focus → Short Break → Focus → ... with a Long
#   Break after every fourth Focus. It knows nothing about tasks or stats;
#   it reports FocusCompleted and lets PlannerService do the bookkeeping.
#
# Key classes:
#   - Phase / TimerStatus: the phase and its run state (idle/running/paused).
#   - TimerSession: the mutable state, owned by exactly one TimerEngine.
#   - EngineSnapshot: frozen view for the UI.
#   - PhaseExpired / FocusCompleted: events handed to the callbacks.
#
# Data flow:
#   QTimer (250 ms) → TickService → engine.tick() → remaining recomputed
#   from deadline → at zero: PhaseExpired → FocusCompleted (focus only)
#   → next phase armed (breaks after focus start running at once).
#
# Interviewer-friendly talking points:
#   1. Deadline anchoring: remaining = ceil(deadline - now). A decrementing
#      counter drifts whenever a tick is late; this never does.
#   2. Integer microseconds for the ceiling, so 1500.000 s is 1500, not 1501.
#      Events carry the deadline as their time, not the (possibly much
#      later) tick that noticed it.
#   3. Expiry happens once: after it, the deadline is gone (break phases) or
#      pushed forward (auto-started break), so later ticks find nothing due.
