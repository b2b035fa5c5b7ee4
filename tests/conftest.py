"""Pytest configuration and fixtures."""
from __future__ import annotations

import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Set test environment before any module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-for-ci")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.auth import create_access_token
from core.db import Base
from core.models import Lead, Project, Tower, Unit, User
from domain.users import UserService

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def engine():
    """Create a test database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@pytest.fixture(scope="session")
def tables(engine):
    """Create all tables for testing."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine, tables) -> Session:
    """
    Returns a SQLAlchemy session for testing.

    Each test gets a fresh transaction that is rolled back after the test.
    """
    connection = engine.connect()
    transaction = connection.begin()

    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    session = TestSession()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test's session."""
    from api.app import app
    from api.deps import get_db, get_readonly_db

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_readonly_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users and auth headers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    """Factory creating users with a known password."""
    counter = {"n": 0}

    def _make(role: str = "master", first_name: str = "Test", last_name: str = "User", **extra) -> User:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "username": extra.pop("username", f"user{n}_{role}"),
            "email": extra.pop("email", f"user{n}.{role}@example.com"),
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "password": TEST_PASSWORD,
        }
        data.update(extra)
        return UserService(db_session).create(data)

    return _make


def headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.username, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def master_user(make_user) -> User:
    return make_user(role="master", first_name="Asha", last_name="Master")


@pytest.fixture
def auth_headers(master_user) -> Dict[str, str]:
    """Bearer headers for a master (all capabilities) user."""
    return headers_for(master_user)


# ---------------------------------------------------------------------------
# Sample inventory and leads
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_project(db_session) -> Project:
    project = Project(
        name="Skyline Residency",
        location="Pune",
        total_units=4,
        available_units=4,
        sold_units=0,
        starting_price=Decimal("4500000.00"),
        is_active=True,
    )
    db_session.add(project)
    db_session.flush()
    return project


@pytest.fixture
def sample_tower(db_session, sample_project) -> Tower:
    tower = Tower(
        project_id=sample_project.id,
        name="Tower A",
        total_floors=2,
        units_per_floor=2,
        total_units=4,
    )
    db_session.add(tower)
    db_session.flush()
    return tower


@pytest.fixture
def sample_unit(db_session, sample_tower) -> Unit:
    unit = Unit(
        tower_id=sample_tower.id,
        project_id=sample_tower.project_id,
        unit_number="A-101",
        floor=1,
        type="2BHK",
        area=Decimal("1050.00"),
        price=Decimal("5000000.00"),
        status="available",
    )
    db_session.add(unit)
    db_session.flush()
    return unit


@pytest.fixture
def make_lead(db_session) -> Callable[..., Lead]:
    def _make(**overrides) -> Lead:
        data = {
            "first_name": "Ravi",
            "last_name": "Kumar",
            "phone": "9876543210",
            "email": "ravi@example.com",
            "source": "website",
            "status": "new",
        }
        data.update(overrides)
        lead = Lead(**data)
        db_session.add(lead)
        db_session.flush()
        return lead

    return _make
