"""
Shared fixtures: an in-memory SQLite session per test, default settings,
a pinned clock and small factories for habits and entries.
"""
import pytest
from datetime import date, timedelta

from habit_ledger.database import Base, create_session_factory
from habit_ledger import models  # noqa: F401  (registers tables)
from habit_ledger.models import Habit, ProgressEntry
from habit_ledger.events import EventDispatcher
from habit_ledger.repositories.settings_repository import SettingsRepository


class FixedClock:
    """Callable clock for services; tests move it day by day"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> date:
        self.today += timedelta(days=days)
        return self.today


@pytest.fixture
def session_factory():
    engine, factory = create_session_factory("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def default_settings(db_session):
    settings = SettingsRepository.get(db_session)
    db_session.commit()
    return settings


@pytest.fixture
def clock():
    return FixedClock(date(2026, 1, 15))


@pytest.fixture
def today(clock):
    return clock.today


@pytest.fixture
def yesterday(clock):
    return clock.today - timedelta(days=1)


@pytest.fixture
def events():
    """Dispatcher that also records everything it emits"""
    dispatcher = EventDispatcher()
    dispatcher.received = []
    dispatcher.subscribe(dispatcher.received.append)
    return dispatcher


def create_habit(db_session, name="Read", target_value=10.0, unit="minutes", is_active=True):
    """Helper to create a habit without its achievement catalog"""
    habit = Habit(name=name, target_value=target_value, unit=unit, is_active=is_active)
    db_session.add(habit)
    db_session.commit()
    db_session.refresh(habit)
    return habit


def create_entry(db_session, habit, day, value=None):
    """Helper to insert an entry directly, bypassing the ledger (batch import)"""
    if value is None:
        value = habit.target_value
    entry = ProgressEntry(
        habit_id=habit.id,
        day=day,
        value=value,
        is_complete=value >= habit.target_value
    )
    db_session.add(entry)
    db_session.commit()
    return entry


@pytest.fixture
def habit(db_session):
    return create_habit(db_session)
