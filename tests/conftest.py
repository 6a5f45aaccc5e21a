"""
Pytest configuration and shared fixtures for the Job Tracker tests.
"""
import os

# Must be set before jobtracker modules read their settings
os.environ.setdefault("JOBTRACKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("JOBTRACKER_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JOBTRACKER_SECRET_KEY", "test-secret-key-for-jwt-tokens-12345678901234567890")

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobtracker.main import app
from jobtracker.config import settings
from jobtracker.database import Base, get_db
from jobtracker import models  # noqa: F401
from jobtracker.auth.models import User
from jobtracker.schemas import JobApplication
from jobtracker.sessions import StateRegistry, get_state_registry
from jobtracker.store import ApplicationStore


# Test Database Setup
@pytest.fixture
def test_db_engine():
    """In-memory SQLite shared across threads (store calls run in a worker thread)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture
def test_db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session_factory):
    return ApplicationStore(session_factory)


@pytest.fixture
def registry(store):
    return StateRegistry(store)


@pytest.fixture
def test_client(session_factory, registry):
    """Create a test client with overridden database and registry dependencies."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_state_registry] = lambda: registry
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def multi_user_mode(monkeypatch):
    """Require real credentials instead of the implicit local user."""
    monkeypatch.setattr(settings.auth, "single_user_mode", False)


# User Fixtures
def _create_user(session, email):
    user = User(email=email, name=email.split("@")[0].title(), is_active=True)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def test_user(test_db_session):
    return _create_user(test_db_session, "alice@example.com")


@pytest.fixture
def other_user(test_db_session):
    return _create_user(test_db_session, "bob@example.com")


# Application Fixtures
@pytest.fixture
def application_data():
    """Create payload as the browser form sends it (camelCase)."""
    return {
        "jobTitle": "Backend Engineer",
        "company": "Acme",
        "platform": "linkedin",
        "location": "Berlin",
        "employmentType": "full-time",
        "dateApplied": "2024-01-03",
        "status": "applied",
        "jobUrl": "https://acme.example.com/jobs/42",
        "contactName": "Dana Smith",
        "notes": "Referred by a former colleague",
    }


def make_application(**overrides) -> JobApplication:
    """Build a record directly, for the pure view and export functions."""
    stamp = overrides.pop("updated_at", datetime(2024, 1, 1, 12, 0, 0))
    data = {
        "id": overrides.pop("id", "app-1"),
        "job_title": "Engineer",
        "company": "Acme",
        "platform": "linkedin",
        "location": "Remote",
        "employment_type": "full-time",
        "date_applied": date(2024, 1, 2),
        "status": "applied",
        "created_at": overrides.pop("created_at", stamp),
        "updated_at": stamp,
    }
    data.update(overrides)
    return JobApplication(**data)
