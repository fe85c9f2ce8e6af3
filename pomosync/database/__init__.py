"""Database package."""

from .db import get_session, init_db
from .models import TimerSnapshotRecord, PendingAction
from .store import SnapshotStore, WIDGET_ACTIONS

__all__ = [
    "get_session",
    "init_db",
    "TimerSnapshotRecord",
    "PendingAction",
    "SnapshotStore",
    "WIDGET_ACTIONS",
]
