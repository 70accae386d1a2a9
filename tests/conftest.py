"""Shared test fixtures.

Every test gets its own SQLite file under tmp_path, a manual clock and a
seeded random source, so ticks and timestamps are fully deterministic.
"""

import random

import pytest
from PySide6.QtCore import QCoreApplication

from zoneclock.controller import FocusController
from zoneclock.session_manager import SessionManager
from zoneclock.settings import Settings
from zoneclock.storage import KEY_ONBOARDING_COMPLETED, Storage
from zoneclock.timer_engine import TimerEngine

START_TS = 1_700_000_000.0


class FakeClock:
    """Manually advanced unix clock."""

    def __init__(self, start: float = START_TS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def send_micro_break_notification(self):
        self.calls.append("micro_break")

    def send_cycle_complete_notification(self):
        self.calls.append("cycle_complete")

    def send_break_complete_notification(self):
        self.calls.append("break_complete")


class RecordingAudio:
    def __init__(self):
        self.calls = []

    def play_micro_break_sound(self):
        self.calls.append("micro_break")

    def play_long_break_sound(self):
        self.calls.append("long_break")

    def play_cycle_complete_sound(self):
        self.calls.append("cycle_complete")


# ---------------------------------------------------------------------------
# Qt
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def qapp():
    """QTimer needs an application instance; no event loop is run."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


# ---------------------------------------------------------------------------
# Core objects
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def storage(tmp_path):
    return Storage(tmp_path / "zoneclock.db")


@pytest.fixture()
def onboarded_storage(storage):
    storage.set_flag(KEY_ONBOARDING_COMPLETED, True)
    return storage


@pytest.fixture()
def session_manager(qapp, onboarded_storage, clock, rng):
    """A SessionManager in READY with 25/5 minute settings."""
    sm = SessionManager(onboarded_storage, clock=clock, rng=rng)
    sm.update_settings(Settings(focus_duration=25, break_duration=5))
    return sm


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def audio():
    return RecordingAudio()


@pytest.fixture()
def engine(session_manager, notifier, audio):
    engine = TimerEngine(session_manager, notifier, audio)
    yield engine
    engine.stop_timer()


@pytest.fixture()
def controller(session_manager, engine):
    return FocusController(session_manager, engine)
