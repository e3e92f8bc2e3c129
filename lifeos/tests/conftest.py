"""
Shared fixtures for the LifeOS test suite.

Every test gets a fresh in-memory SQLite database. Environment defaults
are set before any lifeos module is imported so that importing the app
never touches a real database, log directory or scheduler.
"""
import os
import tempfile

os.environ.setdefault("LIFEOS_DATABASE_URL", "sqlite://")
os.environ.setdefault("LIFEOS_API_KEY", "test-api-key")
os.environ.setdefault("LIFEOS_LOG_DIR", tempfile.mkdtemp(prefix="lifeos-logs-"))
os.environ.setdefault("LIFEOS_SCHEDULER_ENABLED", "false")

import pytest
from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lifeos.database import Base
from lifeos import models  # noqa: F401  registers tables
from lifeos.models import RoutineTask, Settings
from lifeos.services.date_service import DateService

TEST_TIMEZONE = "Asia/Kolkata"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def default_settings(db_session):
    """Settings row with default streak rules and both reminder channels set"""
    settings = Settings(
        notification_email="me@example.com",
        push_token="push-token-123",
    )
    db_session.add(settings)
    db_session.commit()
    db_session.refresh(settings)
    return settings


@pytest.fixture
def date_service():
    return DateService(TEST_TIMEZONE)


@pytest.fixture
def today():
    # A Monday
    return date(2024, 1, 15)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


def create_task(db_session, **kwargs) -> RoutineTask:
    """Create and commit a routine task with sensible defaults"""
    values = {
        "title": "Test task",
        "domain": "health",
        "base_points": 10,
        "order": 0,
        "recurrence_type": "daily",
        "recurrence_days": "[]",
    }
    values.update(kwargs)
    task = RoutineTask(**values)
    db_session.add(task)
    db_session.commit()
    db_session.refresh(task)
    return task


def create_tasks(db_session, count: int, **kwargs) -> list:
    return [
        create_task(db_session, title=f"Task {index + 1}", order=index, **kwargs)
        for index in range(count)
    ]
