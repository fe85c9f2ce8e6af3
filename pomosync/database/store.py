"""Key/value persistence for the timer snapshot and widget actions.

The host writes a snapshot after every transition; at relaunch it reads
it back and hands it to ``TimerEngine.restore``.  Widgets queue a single
pending action (start / pause / reset / skip) that the host consumes
the next time the app becomes active.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..timer.snapshot import SnapshotError, TimerSnapshot
from .db import get_session
from .models import PendingAction, TimerSnapshotRecord

logger = logging.getLogger(__name__)

WIDGET_ACTIONS = ("start", "pause", "reset", "skip")


class SnapshotStore:
    """Reads and writes the single persisted timer snapshot."""

    # ── snapshot ─────────────────────────────────────────────────────

    def save(self, snapshot: TimerSnapshot) -> None:
        with get_session() as db:
            record = db.query(TimerSnapshotRecord).first()
            if record is None:
                record = TimerSnapshotRecord()
                db.add(record)
            record.time_remaining = snapshot.time_remaining
            record.total_time = snapshot.total_time
            record.phase = snapshot.phase.value
            record.current_round = snapshot.current_round
            record.total_rounds = snapshot.total_rounds
            record.routine_name = snapshot.routine_name
            record.is_running = snapshot.is_running
            record.work_duration = snapshot.work_duration
            record.short_break_duration = snapshot.short_break_duration
            record.long_break_duration = snapshot.long_break_duration
            record.end_timestamp = snapshot.end_timestamp if snapshot.is_running else None
            record.updated_at = datetime.utcnow()

    def load(self) -> TimerSnapshot | None:
        """Return the stored snapshot, or ``None`` if there is none.

        A row that no longer parses (e.g. written by an older build) is
        treated as absent.
        """
        with get_session() as db:
            record = db.query(TimerSnapshotRecord).first()
            if record is None:
                return None
            data = {
                "timeRemaining": record.time_remaining,
                "totalTime": record.total_time,
                "phase": record.phase,
                "currentRound": record.current_round,
                "totalRounds": record.total_rounds,
                "routineName": record.routine_name,
                "isRunning": record.is_running,
                "workDuration": record.work_duration,
                "shortBreakDuration": record.short_break_duration,
                "longBreakDuration": record.long_break_duration,
                "endTimestamp": record.end_timestamp,
            }
        try:
            return TimerSnapshot.from_dict(data)
        except SnapshotError as exc:
            logger.warning("Discarding unreadable timer snapshot: %s", exc)
            return None

    def clear(self) -> None:
        with get_session() as db:
            db.query(TimerSnapshotRecord).delete()

    # ── widget actions ───────────────────────────────────────────────

    def queue_action(self, action: str) -> None:
        """Record a widget tap, replacing any earlier unconsumed one."""
        if action not in WIDGET_ACTIONS:
            raise ValueError(f"unknown widget action {action!r}")
        with get_session() as db:
            db.query(PendingAction).delete()
            db.add(PendingAction(action=action))

    def take_pending_action(self) -> str | None:
        """Pop the pending widget action, if any."""
        with get_session() as db:
            record = db.query(PendingAction).first()
            if record is None:
                return None
            action = record.action
            db.delete(record)
        return action
