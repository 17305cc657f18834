"""Shared test fixtures.

Settings are read once, so the environment is pinned before any app import.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VISITOR_RATE_LIMIT_ENABLED"] = "false"
os.environ["BOOTSTRAP_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import itertools  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.models.user import User  # noqa: E402
from app.models.project import Project  # noqa: E402
from app.middleware.auth import create_user_with_api_key, create_project  # noqa: E402
from app.schemas.experiment import ExperimentCreate, VariantCreate  # noqa: E402
from app.services.experiments import ExperimentService  # noqa: E402

TEST_API_KEY = "owner-key-123"


class SequenceRandom:
    """Random source replaying fixed draws in [0, 1)."""

    def __init__(self, values):
        self._values = itertools.cycle(values)

    def random(self):
        return next(self._values)


def experiment_request(project_id, variants=None, **overrides) -> ExperimentCreate:
    """Build a creation request; defaults to a 50/50 control vs variant A."""
    if variants is None:
        variants = [
            VariantCreate(name="Control", is_control=True, traffic_weight=50),
            VariantCreate(name="Variant A", traffic_weight=50),
        ]
    data = {"project_id": project_id, "name": "Hero test", "variants": variants}
    data.update(overrides)
    return ExperimentCreate(**data)


@pytest.fixture
def db():
    """Create test database session."""
    from app.database import SessionLocal, engine, Base

    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    session = SessionLocal()

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def owner(db: Session) -> User:
    return create_user_with_api_key(db, TEST_API_KEY)


@pytest.fixture
def project(db: Session, owner: User) -> Project:
    return create_project(db, owner, "Landing pages")


@pytest.fixture
def create_experiment(db: Session, owner: User, project: Project):
    """Factory creating experiments in the owner's project."""
    def _create(**overrides):
        return ExperimentService(db).create_experiment(
            owner.id, project.id, experiment_request(project.id, **overrides)
        )
    return _create
