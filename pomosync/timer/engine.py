"""Timer state machine for PomoSync.

States
------
IDLE      No countdown active; ``time_remaining`` frozen.
RUNNING   Counting down towards an absolute deadline.
PAUSED    Frozen at an intermediate value, no deadline.

Phases
------
WORK → SHORT_BREAK          (round < total_rounds)
WORK → LONG_BREAK           (round >= total_rounds)
SHORT_BREAK → WORK          (round + 1, capped at total_rounds)
LONG_BREAK → WORK           (round back to 1)

Timekeeping
-----------
While running, the remaining time is always recomputed from the deadline
(``deadline - clock()``), never decremented per tick.  A late or missed
tick (app suspended, event loop busy) therefore never makes the clock
drift; the next tick simply catches up.

``rounds_before_long_break`` is stored with the routine but the phase
advance only schedules a long break after the final round.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING, Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .routines import CLASSIC_POMODORO, RoutineConfiguration

if TYPE_CHECKING:
    from .snapshot import TimerSnapshot


# ── enums ─────────────────────────────────────────────────────────────────


class TimerPhase(Enum):
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 100

PHASE_DISPLAY_NAMES: dict[TimerPhase, str] = {
    TimerPhase.WORK: "Focus",
    TimerPhase.SHORT_BREAK: "Short Break",
    TimerPhase.LONG_BREAK: "Long Break",
}


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Deadline-driven Pomodoro timer.

    Signals
    -------
    tick(time_remaining: float)
        Emitted on every tick while running.
    changed()
        Emitted after every mutation, ticks included.
    state_changed(state: TimerState)
        Emitted after every operation-level transition (start, pause,
        reset, skip, configure, completion, restore, companion apply).
    phase_complete(phase: TimerPhase)
        Emitted when a phase runs out naturally.  Not emitted on skip.
        A slot may call skip() or reset() here; that call replaces the
        normal advance instead of stacking a second one on top.
    auto_started()
        Emitted after the next phase was started automatically.
    """

    tick = pyqtSignal(float)
    changed = pyqtSignal()
    state_changed = pyqtSignal(object)
    phase_complete = pyqtSignal(object)
    auto_started = pyqtSignal()

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        clock: Callable[[], float] = time.time,
        tick_interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._clock = clock

        # ── configuration ─────────────────────────────────────────────
        self.routine_name: str = CLASSIC_POMODORO.name
        self.work_duration: float = CLASSIC_POMODORO.work_seconds
        self.short_break_duration: float = CLASSIC_POMODORO.short_break_seconds
        self.long_break_duration: float = CLASSIC_POMODORO.long_break_seconds
        self.rounds_before_long_break: int = CLASSIC_POMODORO.rounds_before_long_break
        self.auto_start_breaks: bool = False
        self.auto_start_work: bool = False

        # ── cycle / countdown state ───────────────────────────────────
        self._phase: TimerPhase = TimerPhase.WORK
        self._state: TimerState = TimerState.IDLE
        self._current_round: int = 1
        self._total_rounds: int = CLASSIC_POMODORO.total_rounds
        self._time_remaining: float = self.work_duration
        self._total_time: float = self.work_duration
        self._deadline: float | None = None
        self._transitions: int = 0  # bumped by every operation-level transition

        # ── Qt timer (the single tick source) ─────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(tick_interval_ms)
        self._qt_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def current_round(self) -> int:
        """Which work round of the routine (1-based)."""
        return self._current_round

    @property
    def total_rounds(self) -> int:
        return self._total_rounds

    @property
    def time_remaining(self) -> float:
        """Seconds left on the clock (may be fractional)."""
        return self._time_remaining

    @property
    def total_time(self) -> float:
        """Full length of the current phase in seconds."""
        return self._total_time

    @property
    def deadline(self) -> float | None:
        """Unix time at which the running countdown hits zero."""
        return self._deadline

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    @property
    def has_tick_source(self) -> bool:
        return self._qt_timer.isActive()

    @property
    def progress(self) -> float:
        """Fraction remaining: 1.0 at phase start, 0.0 at expiry."""
        if self._total_time <= 0:
            return 1.0
        return self._time_remaining / self._total_time

    @property
    def formatted_time(self) -> str:
        seconds = int(self._time_remaining)
        return f"{seconds // 60:02d}:{seconds % 60:02d}"

    @property
    def phase_display_name(self) -> str:
        return PHASE_DISPLAY_NAMES[self._phase]

    def now(self) -> float:
        """Current time according to the engine's clock."""
        return self._clock()

    def duration_for(self, phase: TimerPhase) -> float:
        if phase == TimerPhase.WORK:
            return self.work_duration
        if phase == TimerPhase.SHORT_BREAK:
            return self.short_break_duration
        return self.long_break_duration

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> None:
        """Count down from the current remaining time.  No-op if running."""
        if self._state == TimerState.RUNNING:
            return
        self._deadline = self._clock() + self._time_remaining
        self._state = TimerState.RUNNING
        self._qt_timer.start()
        self._notify_transition()

    def pause(self) -> None:
        """Freeze the countdown.  No-op unless running."""
        if self._state != TimerState.RUNNING:
            return
        self._qt_timer.stop()
        self._deadline = None
        self._state = TimerState.PAUSED
        self._notify_transition()

    def reset(self) -> None:
        """Back to round 1, Work, full duration, Idle."""
        self._stop_ticking()
        self._state = TimerState.IDLE
        self._current_round = 1
        self._enter_phase(TimerPhase.WORK)
        self._notify_transition()

    def skip(self) -> None:
        """Jump to the next phase without counting this one as complete."""
        self._stop_ticking()
        self._state = TimerState.IDLE
        self._advance()
        self._notify_transition()

    def configure(self, routine: RoutineConfiguration) -> None:
        """Load a routine's durations and rounds, then reset."""
        self.routine_name = routine.name
        self.work_duration = routine.work_seconds
        self.short_break_duration = routine.short_break_seconds
        self.long_break_duration = routine.long_break_seconds
        self.rounds_before_long_break = routine.rounds_before_long_break
        self._total_rounds = routine.total_rounds
        self.reset()

    def ensure_running(self) -> None:
        """Re-arm ticking if the engine thinks it is running but lost its
        tick source (e.g. after the host process was suspended).

        The deadline and remaining time are left alone, so the next tick
        catches up with whatever time passed meanwhile.
        """
        if self._state == TimerState.RUNNING and not self._qt_timer.isActive():
            self._qt_timer.start()

    # ══════════════════════════════════════════════════════════════════
    #  SNAPSHOTS
    # ══════════════════════════════════════════════════════════════════

    def snapshot(self) -> TimerSnapshot:
        from .snapshot import TimerSnapshot

        return TimerSnapshot.capture(self)

    def restore(self, snapshot: TimerSnapshot) -> bool:
        """Resume a countdown that was running when the app went away.

        Only a running snapshot whose end timestamp still lies in the
        future is restored; the remaining time is rebuilt from that
        timestamp so the suspension gap is closed.  Returns whether the
        snapshot was applied.
        """
        if not snapshot.is_running or snapshot.end_timestamp is None:
            return False
        remaining = snapshot.end_timestamp - self._clock()
        if remaining <= 0:
            return False

        self._stop_ticking()
        self._load_fields(snapshot)
        self._time_remaining = min(remaining, self._total_time)
        self._state = TimerState.IDLE
        self.start()
        return True

    def apply_remote(self, snapshot: TimerSnapshot) -> bool:
        """Overwrite local state with a snapshot pushed by a companion.

        The local countdown is paused first so two deadlines never race.
        A running snapshot restarts from its own ``time_remaining``; the
        message timestamp is not used to correct for latency.  A running
        snapshot with no time left is refused: the companion finishes
        that phase itself.  Returns whether the snapshot was applied.
        """
        if snapshot.is_running and snapshot.time_remaining <= 0:
            return False

        if self._state == TimerState.RUNNING:
            self.pause()

        self._stop_ticking()
        self._load_fields(snapshot)

        if snapshot.is_running:
            self._state = TimerState.IDLE
            self.start()
            return True

        if self._time_remaining >= self._total_time:
            self._state = TimerState.IDLE
        else:
            self._state = TimerState.PAUSED
        self._notify_transition()
        return True

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        if self._deadline is None:
            return
        self._time_remaining = max(0.0, self._deadline - self._clock())
        self.tick.emit(self._time_remaining)
        self.changed.emit()

        if self._time_remaining <= 0:
            self._complete_phase()

    def _complete_phase(self) -> None:
        self._stop_ticking()
        completed = self._phase
        transitions = self._transitions
        self.phase_complete.emit(completed)
        if self._transitions != transitions:
            return  # a slot already moved the engine on

        self._advance()

        if completed == TimerPhase.WORK:
            auto_start = self.auto_start_breaks
        else:
            auto_start = self.auto_start_work

        # start() is a no-op while RUNNING, so drop back to IDLE first.
        self._state = TimerState.IDLE
        if auto_start:
            self.start()
            self.auto_started.emit()
        else:
            self._notify_transition()

    def _advance(self) -> None:
        """Move ``phase`` and ``current_round`` to the next position."""
        if self._phase == TimerPhase.WORK:
            if self._current_round >= self._total_rounds:
                self._enter_phase(TimerPhase.LONG_BREAK)
            else:
                self._enter_phase(TimerPhase.SHORT_BREAK)
        elif self._phase == TimerPhase.SHORT_BREAK:
            self._current_round = min(self._current_round + 1, self._total_rounds)
            self._enter_phase(TimerPhase.WORK)
        else:
            self._current_round = 1
            self._enter_phase(TimerPhase.WORK)

    def _enter_phase(self, phase: TimerPhase) -> None:
        self._phase = phase
        self._total_time = self.duration_for(phase)
        self._time_remaining = self._total_time

    def _load_fields(self, snapshot: TimerSnapshot) -> None:
        self.routine_name = snapshot.routine_name
        self.work_duration = snapshot.work_duration
        self.short_break_duration = snapshot.short_break_duration
        self.long_break_duration = snapshot.long_break_duration
        self._total_rounds = snapshot.total_rounds
        self._current_round = snapshot.current_round
        self._phase = snapshot.phase
        # total_time always tracks the configured duration of the phase
        self._total_time = self.duration_for(snapshot.phase)
        self._time_remaining = min(snapshot.time_remaining, self._total_time)

    def _stop_ticking(self) -> None:
        self._qt_timer.stop()
        self._deadline = None

    def _notify_transition(self) -> None:
        self._transitions += 1
        self.state_changed.emit(self._state)
        self.changed.emit()
