"""Routine configurations and built-in presets.

A routine is the recipe a timer runs: how long each phase lasts and how
many work rounds make up the whole thing.  All values are whole minutes;
the engine converts them to seconds in ``TimerEngine.configure``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RoutineConfiguration:
    name: str = "Classic Pomodoro"
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 20
    rounds_before_long_break: int = 4
    total_rounds: int = 4

    def __post_init__(self) -> None:
        for field_name in (
            "work_minutes",
            "short_break_minutes",
            "long_break_minutes",
            "rounds_before_long_break",
            "total_rounds",
        ):
            value = getattr(self, field_name)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{field_name} must be a positive integer, got {value!r}")

    @property
    def work_seconds(self) -> float:
        return float(self.work_minutes * 60)

    @property
    def short_break_seconds(self) -> float:
        return float(self.short_break_minutes * 60)

    @property
    def long_break_seconds(self) -> float:
        return float(self.long_break_minutes * 60)


# ── presets ───────────────────────────────────────────────────────────────

CLASSIC_POMODORO = RoutineConfiguration()

DEEP_WORK = RoutineConfiguration(
    name="Deep Work",
    work_minutes=50,
    short_break_minutes=10,
    long_break_minutes=30,
    rounds_before_long_break=3,
    total_rounds=3,
)

SHORT_SPRINT = RoutineConfiguration(
    name="Short Sprint",
    work_minutes=15,
    short_break_minutes=3,
    long_break_minutes=10,
    rounds_before_long_break=4,
    total_rounds=8,
)

PRESETS: tuple[RoutineConfiguration, ...] = (CLASSIC_POMODORO, DEEP_WORK, SHORT_SPRINT)


def find_preset(name: str) -> RoutineConfiguration | None:
    """Return the built-in routine called *name*, or ``None``."""
    for preset in PRESETS:
        if preset.name == name:
            return preset
    return None
