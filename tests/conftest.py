# tests/conftest.py

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app, get_password_hasher, get_token_issuer
from security import PasswordHasher, TokenIssuer

TEST_SECRET = "test-secret"


@pytest.fixture()
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session (including the ones
    opened from TestClient's worker threads) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def hasher() -> PasswordHasher:
    # 4 is the lowest cost bcrypt accepts
    return PasswordHasher(rounds=4)


@pytest.fixture()
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET, algorithm="HS256", expire_minutes=5)


@pytest.fixture()
def client(engine, hasher, token_issuer):
    testing_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = testing_session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def register_user(client):
    """
    Factory that registers a brand new user through the API.

    Returns the JSON body plus ready-made auth headers, so each test owns
    its users instead of sharing a global one.
    """

    def _register(name: str = "Test User", email: str | None = None, password: str = "s3nha-forte"):
        email = email or f"user-{uuid.uuid4().hex[:12]}@tasks.io"
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        body["password"] = password
        body["headers"] = {"Authorization": f"Bearer {body['token']}"}
        return body

    return _register
