"""Shared test helpers for PomoSync."""

from pomosync.sync.companion import CompanionLink
from pomosync.timer.engine import TimerEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Manually advanced stand-in for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCompanionLink(CompanionLink):
    """Records every payload instead of sending it."""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.sent: list[bytes] = []

    @property
    def is_reachable(self) -> bool:
        return self.reachable

    def send(self, payload: bytes) -> None:
        self.sent.append(payload)


def run_out(engine: TimerEngine, clock: FakeClock) -> None:
    """Jump the clock to the running phase's deadline and tick once."""
    clock.now = engine.deadline
    engine._on_tick()
