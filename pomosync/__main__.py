"""Allow running PomoSync as a module: python -m pomosync."""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QCoreApplication

from .database.db import init_db
from .database.store import SnapshotStore
from .host import TimerHost
from .settings import load_settings
from .timer.engine import TimerEngine, TimerState
from .timer.routines import PRESETS


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pomosync", description="Headless Pomodoro timer.")
    parser.add_argument(
        "--routine",
        choices=[preset.name for preset in PRESETS],
        help="routine to run (default: the one in settings)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    init_db()
    settings = load_settings()
    if args.routine:
        settings.routine_name = args.routine

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("PomoSync")
    app.setOrganizationName("PomoSync")
    # Ctrl-C should stop the event loop
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    engine = TimerEngine(tick_interval_ms=settings.tick_interval_ms)
    host = TimerHost(engine, SnapshotStore(), settings)

    def show(state: TimerState) -> None:
        print(
            f"[{engine.phase_display_name}] round {engine.current_round}/"
            f"{engine.total_rounds}  {engine.formatted_time}  ({state.value})"
        )

    engine.state_changed.connect(show)
    app.aboutToQuit.connect(host.on_app_went_to_background)

    if not host.launch() and not engine.is_running:
        engine.start()
    print("PomoSync ready!")

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
