"""Serializable timer snapshots.

A snapshot is everything another process needs to pick the countdown up
again: the app after a relaunch, a widget drawing the lock screen, or a
companion device.  The wire form is a flat key/value mapping::

    {
        "timeRemaining": 1312.4,
        "totalTime": 1500.0,
        "phase": "work",               # work | shortBreak | longBreak
        "currentRound": 2,
        "totalRounds": 4,
        "routineName": "Classic Pomodoro",
        "isRunning": true,
        "workDuration": 1500.0,
        "shortBreakDuration": 300.0,
        "longBreakDuration": 1200.0,
        "endTimestamp": 1760860000.0,  # only while running
        "timestamp": 1760858687.6      # capture time
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from .engine import TimerPhase

if TYPE_CHECKING:
    from .engine import TimerEngine


class SnapshotError(ValueError):
    """Raised for a snapshot mapping that cannot be applied safely."""


_PHASES_BY_WIRE = {phase.value: phase for phase in TimerPhase}


@dataclass(frozen=True)
class TimerSnapshot:
    time_remaining: float
    total_time: float
    phase: TimerPhase
    current_round: int
    total_rounds: int
    routine_name: str
    is_running: bool
    work_duration: float
    short_break_duration: float
    long_break_duration: float
    end_timestamp: float | None = None
    timestamp: float | None = None

    # ── construction ─────────────────────────────────────────────────

    @classmethod
    def capture(cls, engine: TimerEngine) -> TimerSnapshot:
        now = engine.now()
        running = engine.is_running
        return cls(
            time_remaining=engine.time_remaining,
            total_time=engine.total_time,
            phase=engine.phase,
            current_round=engine.current_round,
            total_rounds=engine.total_rounds,
            routine_name=engine.routine_name,
            is_running=running,
            work_duration=engine.work_duration,
            short_break_duration=engine.short_break_duration,
            long_break_duration=engine.long_break_duration,
            end_timestamp=now + engine.time_remaining if running else None,
            timestamp=now,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimerSnapshot:
        """Parse the wire mapping.

        Validation happens up front so a bad mapping is rejected as a
        whole; nothing downstream ever sees a half-parsed snapshot.
        """
        if not isinstance(data, Mapping):
            raise SnapshotError(f"expected a mapping, got {type(data).__name__}")

        phase_name = data.get("phase")
        phase = _PHASES_BY_WIRE.get(phase_name) if isinstance(phase_name, str) else None
        if phase is None:
            raise SnapshotError(f"unrecognized phase {phase_name!r}")

        total_rounds = _int(data, "totalRounds")
        if total_rounds < 1:
            raise SnapshotError(f"totalRounds must be >= 1, got {total_rounds}")

        durations = {
            key: _number(data, key)
            for key in ("workDuration", "shortBreakDuration", "longBreakDuration")
        }
        for key, value in durations.items():
            if value <= 0:
                raise SnapshotError(f"{key} must be positive, got {value}")

        total_time = _number(data, "totalTime")
        if total_time <= 0:
            raise SnapshotError(f"totalTime must be positive, got {total_time}")

        is_running = data.get("isRunning")
        if not isinstance(is_running, bool):
            raise SnapshotError(f"isRunning must be a bool, got {is_running!r}")

        routine_name = data.get("routineName", "")
        if not isinstance(routine_name, str):
            raise SnapshotError(f"routineName must be a string, got {routine_name!r}")

        end_timestamp = _optional_number(data, "endTimestamp") if is_running else None
        remaining = min(max(0.0, _number(data, "timeRemaining")), total_time)
        current_round = min(max(1, _int(data, "currentRound")), total_rounds)

        return cls(
            time_remaining=remaining,
            total_time=total_time,
            phase=phase,
            current_round=current_round,
            total_rounds=total_rounds,
            routine_name=routine_name,
            is_running=is_running,
            work_duration=durations["workDuration"],
            short_break_duration=durations["shortBreakDuration"],
            long_break_duration=durations["longBreakDuration"],
            end_timestamp=end_timestamp,
            timestamp=_optional_number(data, "timestamp"),
        )

    # ── output ───────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timeRemaining": self.time_remaining,
            "totalTime": self.total_time,
            "phase": self.phase.value,
            "currentRound": self.current_round,
            "totalRounds": self.total_rounds,
            "routineName": self.routine_name,
            "isRunning": self.is_running,
            "workDuration": self.work_duration,
            "shortBreakDuration": self.short_break_duration,
            "longBreakDuration": self.long_break_duration,
        }
        if self.is_running and self.end_timestamp is not None:
            data["endTimestamp"] = self.end_timestamp
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data

    def remaining_at(self, when: float) -> float:
        """Seconds a read-only surface should show at unix time *when*."""
        if self.is_running and self.end_timestamp is not None:
            return max(0.0, self.end_timestamp - when)
        return self.time_remaining


# ── field helpers ─────────────────────────────────────────────────────────


def _number(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotError(f"{key} must be a number, got {value!r}")
    return float(value)


def _optional_number(data: Mapping[str, Any], key: str) -> float | None:
    if data.get(key) is None:
        return None
    return _number(data, key)


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{key} must be an integer, got {value!r}")
    return value
