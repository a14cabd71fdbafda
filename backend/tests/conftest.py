# backend/tests/conftest.py
"""
Pytest configuration for the Planner backend.

Every test gets its own in-memory SQLite database, so services are free to
commit and roll back exactly as they do in production.
"""

import calendar
import os
import sys

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["is_testing"] = "true"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from app.core.config import settings

settings.is_testing = True

from datetime import datetime
from typing import Callable, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_calendar_cache
from app.database import Base, create_db_engine
from app.main import fastapi_app as app  # Use FastAPI instance for tests

# Importing the models also populates Base.metadata for create_all.
from app.models.task import Task
from app.models.time_block import TimeBlock
from app.models.user import User
from app.services.calendar_cache import CalendarViewCache
from app.services.time_block_service import TimeBlockService


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_engine():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Session:
    session = sessionmaker(
        bind=test_engine, autoflush=False, expire_on_commit=False, future=True
    )()
    yield session
    session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def calendar_cache(clock) -> CalendarViewCache:
    return CalendarViewCache(
        max_size=100,
        base_ttls={"day": 120, "week": 300, "month": 600},
        eviction_threshold=0.8,
        eviction_ratio=0.2,
        clock=clock,
    )


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(email: Optional[str] = None, timezone: Optional[str] = None) -> User:
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", timezone=timezone)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def test_user(make_user) -> User:
    return make_user(email="owner@example.com")


@pytest.fixture
def other_user(make_user) -> User:
    return make_user(email="someone.else@example.com")


@pytest.fixture
def make_task(db) -> Callable[..., Task]:
    def _make_task(user: User, title: str = "Write report") -> Task:
        task = Task(user_id=user.id, title=title)
        db.add(task)
        db.commit()
        return task

    return _make_task


@pytest.fixture
def make_time_block(db) -> Callable[..., TimeBlock]:
    """Insert a block directly, bypassing the service's conflict check."""

    def _make_time_block(
        user: User,
        start_time: datetime,
        end_time: datetime,
        title: str = "Focus",
        **kwargs,
    ) -> TimeBlock:
        time_block = TimeBlock(
            user_id=user.id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            version=1,
            **kwargs,
        )
        db.add(time_block)
        db.commit()
        return time_block

    return _make_time_block


@pytest.fixture
def time_block_service(db, calendar_cache) -> TimeBlockService:
    return TimeBlockService(db, calendar_cache, week_start=calendar.SUNDAY)


@pytest.fixture
def client(db, calendar_cache):
    """Test client sharing the test session and a fresh calendar cache."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_calendar_cache] = lambda: calendar_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_user) -> dict:
    return {"X-User-Id": test_user.id}
