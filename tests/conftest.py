"""
Shared fixtures and helpers for the SalesCoach test suite.

API tests run against a fresh in-memory SQLite database per test; the app's
get_db dependency is overridden to hand out the test session.
"""
import os

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEFAULT_DATA"] = "0"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salescoach.main import app
from salescoach.models.database import Base, get_db
from salescoach.models.models import User
from salescoach.utils.rubric import seed_default_rubric


# --------------------------------------------------------------------------
# Plain-object builders for the pure scoring functions
# --------------------------------------------------------------------------

def make_behavior(behavior_id: int, level: int = 1):
    return SimpleNamespace(id=behavior_id, proficiency_level=level)


def make_substep(behaviors, title: str = "Substep"):
    return SimpleNamespace(title=title, behaviors=list(behaviors))


def make_step(step_id: int, behavior_count: int, first_behavior_id: int = None, title: str = None):
    """A step with one substep holding `behavior_count` level-1 behaviors."""
    start = first_behavior_id if first_behavior_id is not None else step_id * 100
    behaviors = [make_behavior(start + offset) for offset in range(behavior_count)]
    return SimpleNamespace(id=step_id, title=title or f"Step {step_id}", substeps=[make_substep(behaviors)])


def behavior_ids(step):
    return [behavior.id for substep in step.substeps for behavior in substep.behaviors]


# --------------------------------------------------------------------------
# Database and API fixtures
# --------------------------------------------------------------------------

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def seeded_db(db):
    seed_default_rubric(db)
    return db


@pytest.fixture
def client(seeded_db, tmp_path, monkeypatch):
    monkeypatch.setattr("salescoach.services.pdf_report.REPORTS_DIR", str(tmp_path / "reports"))

    def override_get_db():
        yield seeded_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def coach(seeded_db):
    user = User(full_name="Casey Coach", email="casey@example.com", team="North")
    seeded_db.add(user)
    seeded_db.commit()
    seeded_db.refresh(user)
    return user


def create_assessment(client, coach_id: int, assessee: str = "Sam Seller", **extra) -> dict:
    payload = {"title": f"Ride-along with {assessee}", "user_id": coach_id, "assessee_name": assessee}
    payload.update(extra)
    response = client.post("/api/assessments/", json=payload)
    assert response.status_code == 200, response.text
    return response.json()
