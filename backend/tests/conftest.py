"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Keep the module-level engine off disk before importing the app
os.environ["DATABASE_URL"] = "sqlite://"

from sellerhub.auth.auth_handler import ALGORITHM
from sellerhub.config import Settings, get_settings
from sellerhub.db import get_session
from sellerhub.main import app
from sellerhub.models import meli_oauth_db  # noqa: F401

TEST_JWT_SECRET = "test-session-secret"
TEST_CLIENT_ID = "1234567890"
TEST_CLIENT_SECRET = "test-client-secret"
TEST_REDIRECT_URI = "https://sellerhub.test/meli/oauth/callback"
TEST_TOKEN_URL = "https://api.mercadolibre.com/oauth/token"


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a session token the way the identity provider does."""
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    if settings.session_jwt_audience:
        to_encode.setdefault("aud", settings.session_jwt_audience)
    return jwt.encode(to_encode, settings.session_jwt_secret, algorithm=ALGORITHM)


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings with a complete Mercado Livre configuration."""
    monkeypatch.setenv("SESSION_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("SESSION_JWT_AUDIENCE", raising=False)
    monkeypatch.setenv("MERCADO_LIVRE_CLIENT_ID", TEST_CLIENT_ID)
    monkeypatch.setenv("MERCADO_LIVRE_CLIENT_SECRET", TEST_CLIENT_SECRET)
    monkeypatch.setenv("MERCADO_LIVRE_REDIRECT_URI", TEST_REDIRECT_URI)
    monkeypatch.setenv("MERCADO_LIVRE_TOKEN_URL", TEST_TOKEN_URL)
    monkeypatch.delenv("MERCADO_LIVRE_AUTH_URL", raising=False)
    monkeypatch.delenv("MERCADO_LIVRE_SITE_ID", raising=False)
    monkeypatch.setenv("MERCADO_LIVRE_HTTP_TIMEOUT", "5")
    monkeypatch.delenv("EXPIRY_WARNING_DAYS", raising=False)
    return Settings()


@pytest.fixture
def db_engine():
    """In-memory database shared by the test and the app."""
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
def db_session(db_engine) -> Generator[Session, None, None]:
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def client(db_session: Session, settings: Settings) -> Generator[TestClient, None, None]:
    """Test client with database and settings dependencies overridden."""

    def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings: Settings):
    """Build an Authorization header for a dashboard user."""

    def _headers(user_id: str = "user-1") -> dict:
        token = create_access_token({"sub": user_id}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


def make_response(status_code: int = 200, json_body=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def fake_response():
    """Factory for stubbed token endpoint responses."""
    return make_response


@pytest.fixture
def token_post() -> Generator[MagicMock, None, None]:
    """Patch the HTTP call to the Mercado Livre token endpoint."""
    with patch("sellerhub.utils.meli_client.requests.post") as mock_post:
        yield mock_post
