"""
Pytest configuration and shared fixtures.
"""

import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orgplan.storage.models import Base, InitiativeModel, TeamModel


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Set up test environment variables."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ.setdefault("DEBUG", "true")
    os.environ.setdefault("DB_CREATE_SCHEMA", "false")


# Use in-memory SQLite so storage, service and router tests need no external DB.
# StaticPool keeps a single connection so TestClient threads see the same data.
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def make_team(session):
    def _make(team_id: str, capacity: int = 100, current_workload: int = 0, name: str | None = None) -> TeamModel:
        team = TeamModel(
            id=team_id,
            name=name or team_id.replace("_", " ").title(),
            capacity=capacity,
            current_workload=current_workload,
            member_count=0,
            skills=[],
        )
        session.add(team)
        session.commit()
        return team
    return _make


@pytest.fixture
def make_initiative(session):
    def _make(initiative_id: str, name: str | None = None) -> InitiativeModel:
        initiative = InitiativeModel(id=initiative_id, name=name or initiative_id)
        session.add(initiative)
        session.commit()
        return initiative
    return _make


@pytest.fixture
def q1():
    """A first-quarter assignment window."""
    return date(2026, 1, 5), date(2026, 3, 27)
