"""Shared pytest fixtures for PomoSync tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from pomosync.database.db import configure_engine, init_db
from pomosync.database.store import SnapshotStore
from pomosync.host import TimerHost
from pomosync.settings import Settings
from pomosync.timer.engine import TimerEngine

from helpers import FakeClock, FakeCompanionLink


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(qapp, clock):
    """Fresh TimerEngine on a fake clock, auto-start OFF."""
    return TimerEngine(parent=None, clock=clock)


@pytest.fixture
def engine_auto(qapp, clock):
    """Fresh TimerEngine with both auto-start flags ON."""
    eng = TimerEngine(parent=None, clock=clock)
    eng.auto_start_breaks = True
    eng.auto_start_work = True
    return eng


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def link():
    return FakeCompanionLink()


@pytest.fixture
def host(engine, store, settings, link):
    return TimerHost(engine, store, settings, companion=link)
