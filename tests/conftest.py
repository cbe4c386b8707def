"""
Test configuration and fixtures.

The app is pointed at an in-memory SQLite database before it is imported;
each client fixture runs the lifespan, which creates the tables, and the
shutdown disposes the engine so the next test starts empty.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from app.db.base import Base
from app.db.sessions import SessionLocal, engine
from app.main import app
from app.models.user import User
from app.services.account_service import AccountService


@pytest.fixture
def client():
    """Test client fixture with a fresh database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    """A session on freshly created tables, for service-level tests."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db) -> User:
    AccountService(db).register("Ada", "ada@medli.io", "password1")
    return db.query(User).filter(User.email == "ada@medli.io").one()


def register(client, name="A", email="a@x.com", password="password1"):
    return client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client) -> str:
    response = register(client)
    assert response.status_code == 201
    return response.json()["token"]


@pytest.fixture
def headers(token) -> dict:
    return auth_headers(token)
