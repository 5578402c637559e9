"""Shared fixtures: a throwaway SQLite database per test and engine builders."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy.orm import sessionmaker
from app.database import build_engine, create_tables
from app.services.counter_store import CounterStore
from app.services.history_service import HistorySink
from app.services.numbering_engine import NumberingEngine, ServiceLocks
from app.services.recall_tracker import RecallTracker
from app.services.reset_scheduler import DailyResetScheduler


class FakeClock:
    """Callable clock returning a settable naive-UTC datetime."""

    def __init__(self, start=datetime(2024, 3, 4, 8, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


@pytest.fixture
def db_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'queue.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def tracker(monotonic):
    return RecallTracker(window_seconds=8, clock=monotonic)


@pytest.fixture
def locks():
    return ServiceLocks()


@pytest.fixture
def make_engine(clock, tracker, locks):
    """Build a NumberingEngine on a session; shares tracker and locks like the app does."""
    def _make(session, resetter=None, max_sequence=999):
        return NumberingEngine(store=CounterStore(session, clock=clock), history=HistorySink(session),
                               tracker=tracker, resetter=resetter, locks=locks, clock=clock,
                               max_sequence=max_sequence, freshness_seconds=8)
    return _make


@pytest.fixture
def numbering(db, make_engine):
    return make_engine(db)


@pytest.fixture
def scheduler():
    return DailyResetScheduler(timezone="Asia/Ho_Chi_Minh", today_fn=lambda: date(2024, 3, 4))
