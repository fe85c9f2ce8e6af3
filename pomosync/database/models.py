"""SQLAlchemy ORM models for PomoSync."""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class TimerSnapshotRecord(Base):
    """Single-row table holding the last persisted timer snapshot.

    Read back at relaunch and by the widget surfaces.
    """

    __tablename__ = "timer_snapshot"

    id = Column(Integer, primary_key=True, autoincrement=True)
    time_remaining = Column(Float, nullable=False)
    total_time = Column(Float, nullable=False)
    phase = Column(String(20), nullable=False, default="work")  # work | shortBreak | longBreak
    current_round = Column(Integer, nullable=False, default=1)
    total_rounds = Column(Integer, nullable=False, default=4)
    routine_name = Column(String(255), nullable=False, default="")
    is_running = Column(Boolean, nullable=False, default=False)
    work_duration = Column(Float, nullable=False)
    short_break_duration = Column(Float, nullable=False)
    long_break_duration = Column(Float, nullable=False)
    end_timestamp = Column(Float, nullable=True)   # unix seconds, running only
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<TimerSnapshotRecord phase={self.phase} "
            f"round={self.current_round}/{self.total_rounds} "
            f"running={self.is_running}>"
        )


class PendingAction(Base):
    """A control tapped on a widget while the app was not in front.

    At most one row; a newer tap replaces the older one.
    """

    __tablename__ = "pending_actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(20), nullable=False)  # start | pause | reset | skip
    queued_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<PendingAction action={self.action}>"
