"""
Shared test fixtures: in-memory database, API client and token helpers.
"""

import os
from datetime import datetime, timedelta

import pytest

# Configure test environment BEFORE importing app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DAPR_ENABLED"] = "false"
os.environ["REMINDER_TIMEZONE"] = "UTC"

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.config import get_session
from app.main import app
from app.middleware.auth import JWT_ALGORITHM, JWT_SECRET
from app.models import Document
from app.utils.metrics import metrics_collector


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
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
def client(engine):
    """API client whose requests use the test database."""
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_collector.reset()
    yield


def make_token(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    payload = {
        "sub": user_id,
        "email": f"{user_id}@example.com",
        "exp": datetime.utcnow() + expires_in,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def make_document(session):
    """Insert a document with the given extracted date arrays."""
    def _make(owner_id="user-1", title="Rent Contract", due_date=None, category="Real Estate", **extracted):
        document = Document(
            owner_id=owner_id,
            title=title,
            filename=f"{title.lower().replace(' ', '_')}.pdf",
            category=category,
            extracted_data=extracted,
            due_date=due_date,
        )
        session.add(document)
        session.commit()
        session.refresh(document)
        return document
    return _make
