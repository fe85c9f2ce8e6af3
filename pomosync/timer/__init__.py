"""Timer package."""

from .engine import (
    TimerEngine,
    TimerPhase,
    TimerState,
    TICK_INTERVAL_MS,
    PHASE_DISPLAY_NAMES,
)
from .routines import (
    RoutineConfiguration,
    CLASSIC_POMODORO,
    DEEP_WORK,
    SHORT_SPRINT,
    PRESETS,
    find_preset,
)
from .snapshot import TimerSnapshot, SnapshotError

__all__ = [
    "TimerEngine",
    "TimerPhase",
    "TimerState",
    "TICK_INTERVAL_MS",
    "PHASE_DISPLAY_NAMES",
    "RoutineConfiguration",
    "CLASSIC_POMODORO",
    "DEEP_WORK",
    "SHORT_SPRINT",
    "PRESETS",
    "find_preset",
    "TimerSnapshot",
    "SnapshotError",
]
