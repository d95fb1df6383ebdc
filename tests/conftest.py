"""
Pytest fixtures for the Eco Loop test suite.

Every test gets a fresh in-memory SQLite database.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ecoloop.db import get_db
from ecoloop.main import app
from ecoloop.models import Base, FarmPlan
from ecoloop.seed_data import seed_task_templates

USER_ID = "farmer-1"
OTHER_USER_ID = "farmer-2"


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    Session = sessionmaker(bind=test_engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def catalog(db_session):
    seed_task_templates(db_session)
    return db_session


@pytest.fixture
def make_plan(db_session):
    """Stores a farm plan; keyword arguments override the defaults."""
    def _make_plan(**overrides) -> FarmPlan:
        values = dict(
            user_id=USER_ID,
            plan_name="First flock",
            budget=150000,
            space_m2=20,
            experience_level="beginner",
            duration_days=21,
            recommended_flock_size=114,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 22),
            status="active",
        )
        values.update(overrides)
        plan = FarmPlan(**values)
        db_session.add(plan)
        db_session.commit()
        db_session.refresh(plan)
        return plan

    return _make_plan


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}
