"""Shared test fixtures: an in-memory database, a repository and an API client."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import tracker.models  # noqa: F401
from tracker.db.session import get_db
from tracker.main import app
from tracker.schemas.project import ProjectCreate
from tracker.services.repository import ProjectRepository


def make_record(**overrides) -> SimpleNamespace:
    """Plain project record for status engine tests; defaults describe a fresh project."""
    fields = dict(
        id="20240101000000-abc123",
        name="Inventory dashboard",
        client_name=None,
        description=None,
        type="software",
        created_at="2024-01-01T00:00:00Z",
        start_date=None,
        deadline="2024-03-01",
        completed_at=None,
        delivered_at=None,
        total_amount=1000,
        advance_received=0,
        total_received=0,
        partner_share_given=None,
        partner_share_date=None,
        harshk_share_given=None,
        harshk_share_date=None,
        nikku_share_given=None,
        nikku_share_date=None,
        completion_video_link=None,
        repo_link=None,
        live_link=None,
        completion_notes=None,
        delivery_notes=None,
        internal_notes=None,
        tech_stack=None,
        deliverables=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared across threads (TestClient runs handlers in a worker thread)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session) -> ProjectRepository:
    return ProjectRepository(session)


@pytest.fixture
def project_data():
    """Minimal valid creation payload, keyed by Python field names."""
    return {
        "name": "Inventory dashboard",
        "type": "software",
        "deadline": "2024-03-01",
        "total_amount": 1000,
    }


@pytest.fixture
def create_project(repo, project_data):
    """Factory creating a stored project from project_data plus overrides."""

    def _create(**overrides):
        return repo.create(ProjectCreate(**{**project_data, **overrides}))

    return _create


@pytest.fixture
def client(engine):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
