"""The host that owns a TimerEngine and wires it to the outside world.

Responsibilities
----------------
- Persist a snapshot after every engine transition (write-after-mutate).
- Restore a running countdown at launch from the stored deadline.
- Push state to a companion device and apply state pushed from one.
- Exchange routines with the companion on request.
- Replay the widget action queued while the app was in the background.
- Re-emit phase completion / auto-start for notification and recording
  collaborators.

Everything it talks to is handed in through the constructor.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from .database.store import SnapshotStore
from .settings import Settings
from .sync.companion import (
    ENVELOPE_KEY,
    REQUEST_ROUTINES_KEY,
    ROUTINES_KEY,
    CompanionLink,
    NullCompanionLink,
    decode_routines,
    decode_timer_state,
    encode_routines,
    encode_routines_request,
    encode_timer_state,
    load_message,
)
from .timer.engine import TimerEngine, TimerPhase, TimerState
from .timer.routines import CLASSIC_POMODORO, PRESETS, RoutineConfiguration
from .timer.snapshot import SnapshotError, TimerSnapshot

logger = logging.getLogger(__name__)


class TimerHost(QObject):
    """Glue between the engine, the snapshot store and the companion link.

    Signals
    -------
    phase_completed(phase: TimerPhase)
        A phase ran out naturally.
    auto_started()
        The following phase was started without user input.
    routines_received(routines: list[RoutineConfiguration])
        The companion sent its routines.
    """

    phase_completed = pyqtSignal(object)
    auto_started = pyqtSignal()
    routines_received = pyqtSignal(object)

    def __init__(
        self,
        engine: TimerEngine,
        store: SnapshotStore,
        settings: Settings,
        companion: CompanionLink | None = None,
        routines: Sequence[RoutineConfiguration] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.engine = engine
        self.store = store
        self.settings = settings
        self.companion = companion if companion is not None else NullCompanionLink()
        self.routines: list[RoutineConfiguration] = list(routines if routines is not None else PRESETS)
        self.received_routines: list[RoutineConfiguration] = []

        self._applying_remote = False
        self._launching = False
        self._last_remote_timestamp: float | None = None

        self._actions: dict[str, Callable[[], None]] = {
            "start": engine.start,
            "pause": engine.pause,
            "reset": engine.reset,
            "skip": engine.skip,
        }

        engine.state_changed.connect(self._on_state_changed)
        engine.phase_complete.connect(self._on_phase_complete)
        engine.auto_started.connect(self._on_auto_started)

    # ══════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def launch(self) -> bool:
        """Configure from settings, then pick up where the last run left off.

        Nothing is persisted or pushed to the companion while the fresh
        engine is being set up; a restored countdown is saved and shared
        once at the end, a stale snapshot is cleared.  Returns True when
        a running countdown was restored.
        """
        saved = self.store.load()

        self._launching = True
        try:
            self.engine.auto_start_breaks = self.settings.auto_start_breaks
            self.engine.auto_start_work = self.settings.auto_start_work
            self.configure(self._routine_from_settings())
            restored = saved is not None and self.engine.restore(saved)
        finally:
            self._launching = False

        if restored:
            logger.info(
                "Restored %s round %d/%d with %.1fs left",
                self.engine.phase.value,
                self.engine.current_round,
                self.engine.total_rounds,
                self.engine.time_remaining,
            )
            self._persist()
            self.push_to_companion()
        elif saved is not None:
            logger.info("Discarded saved timer state (not running or already elapsed)")
            self.store.clear()

        self.apply_pending_action()
        return restored

    def on_app_became_active(self) -> None:
        self.engine.ensure_running()
        self.apply_pending_action()

    def on_app_went_to_background(self) -> None:
        self._persist()

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def toggle(self) -> None:
        """Start/pause button."""
        if self.engine.is_running:
            self.engine.pause()
        else:
            self.engine.start()

    def configure(self, routine: RoutineConfiguration) -> None:
        self.engine.configure(routine)

    def find_routine(self, name: str) -> RoutineConfiguration | None:
        """Our own routines first, then the ones the companion sent."""
        for routine in (*self.routines, *self.received_routines):
            if routine.name == name:
                return routine
        return None

    def apply_pending_action(self) -> str | None:
        """Run the widget action queued while we were away, if any."""
        action = self.store.take_pending_action()
        if action is None:
            return None
        handler = self._actions.get(action)
        if handler is None:
            logger.warning("Ignoring unknown widget action %r", action)
            return None
        logger.info("Applying widget action %r", action)
        handler()
        return action

    # ══════════════════════════════════════════════════════════════════
    #  COMPANION
    # ══════════════════════════════════════════════════════════════════

    def receive_companion_message(self, payload: bytes | str | dict[str, Any]) -> bool:
        """Handle a message from the companion device.

        Every part of the message is validated before anything is
        applied; a malformed message is rejected as a whole without
        touching the engine.  Returns whether anything was applied.
        """
        try:
            message = load_message(payload)
            snapshot = decode_timer_state(message) if ENVELOPE_KEY in message else None
            routines = decode_routines(message) if ROUTINES_KEY in message else None
        except SnapshotError as exc:
            logger.warning("Rejected companion message: %s", exc)
            return False

        wants_routines = message.get(REQUEST_ROUTINES_KEY) is True
        if snapshot is None and routines is None and not wants_routines:
            logger.warning("Rejected companion message with keys %s", sorted(message))
            return False

        applied = False
        if routines is not None:
            self.received_routines = routines
            logger.info("Received %d routines from companion", len(routines))
            self.routines_received.emit(routines)
            applied = True
        if wants_routines:
            applied = self.send_routines() or applied
        if snapshot is not None:
            applied = self._apply_timer_state(snapshot) or applied
        return applied

    def push_to_companion(self) -> bool:
        if not self._companion_available():
            return False
        self.companion.send(encode_timer_state(self.engine.snapshot()))
        return True

    def send_routines(self) -> bool:
        if not self._companion_available():
            return False
        self.companion.send(encode_routines(self.routines))
        return True

    def request_routines(self) -> bool:
        if not self._companion_available():
            return False
        self.companion.send(encode_routines_request())
        return True

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _apply_timer_state(self, snapshot: TimerSnapshot) -> bool:
        if (
            self.settings.reject_stale_sync
            and snapshot.timestamp is not None
            and self._last_remote_timestamp is not None
            and snapshot.timestamp < self._last_remote_timestamp
        ):
            logger.info(
                "Ignoring stale companion state (%.3f < %.3f)",
                snapshot.timestamp,
                self._last_remote_timestamp,
            )
            return False

        self._applying_remote = True
        try:
            applied = self.engine.apply_remote(snapshot)
        finally:
            self._applying_remote = False

        if not applied:
            logger.info("Ignoring companion state for a %s phase with no time left", snapshot.phase.value)
            return False
        if snapshot.timestamp is not None:
            self._last_remote_timestamp = snapshot.timestamp
        return True

    def _companion_available(self) -> bool:
        return self.settings.companion_sync_enabled and self.companion.is_reachable

    def _routine_from_settings(self) -> RoutineConfiguration:
        routine = self.find_routine(self.settings.routine_name)
        if routine is None:
            logger.warning(
                "Unknown routine %r, using %s",
                self.settings.routine_name,
                CLASSIC_POMODORO.name,
            )
            routine = CLASSIC_POMODORO
        return routine

    def _persist(self) -> None:
        self.store.save(self.engine.snapshot())

    def _on_state_changed(self, state: TimerState) -> None:
        if self._launching:
            return
        self._persist()
        if not self._applying_remote:
            self.push_to_companion()

    def _on_phase_complete(self, phase: TimerPhase) -> None:
        logger.info("%s phase complete (round %d)", phase.value, self.engine.current_round)
        self.phase_completed.emit(phase)

    def _on_auto_started(self) -> None:
        logger.info("Auto-started %s", self.engine.phase.value)
        self.auto_started.emit()
