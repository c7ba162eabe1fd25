"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite://")

from handoff.database import Base, get_db  # noqa: E402
from handoff.database import engine as app_engine  # noqa: E402
from handoff.main import app  # noqa: E402
from handoff.schemas.event import Event, SupplementalEvent  # noqa: E402


@pytest.fixture(scope="session")
def engine():
    """Test database engine (in-memory SQLite unless DATABASE_URL says otherwise)."""
    return app_engine


@pytest.fixture(scope="session")
def tables(engine):
    """Create all tables for tests."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine, tables) -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database session override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Build client-side Event objects without touching the store.

    ``travel`` is a list of ``(type, start, end)`` tuples, kept in order.
    """

    def _make_event(
        event_id: int,
        start: datetime,
        end: datetime,
        assignee: int | None = None,
        location: str | None = None,
        description: str | None = None,
        travel: list[tuple[str, datetime, datetime]] | None = None,
        version: int = 1,
    ) -> Event:
        return Event(
            id=event_id,
            title=f"Event {event_id}",
            description=description,
            location=location,
            start_time=start,
            end_time=end,
            assigned_to_user_id=assignee,
            version=version,
            supplemental_events=[
                SupplementalEvent(
                    id=event_id * 100 + index,
                    parent_event_id=event_id,
                    type=kind,
                    start_time=travel_start,
                    end_time=travel_end,
                )
                for index, (kind, travel_start, travel_end) in enumerate(travel or [])
            ],
        )

    return _make_event
