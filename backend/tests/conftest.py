from __future__ import annotations

import os

# La configuración se lee al importar tourbook: fijarla antes.
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from tourbook.audit.models import AuditLog  # noqa: F401  # ensure table registration
from tourbook.auth import repository
from tourbook.auth.jwt_handler import create_access_token
from tourbook.auth.passwords import hash_password
from tourbook.auth.user_model import User, UserRole
from tourbook.db import build_engine, get_session as app_get_session, set_engine
from tourbook.mailer import get_mailer
from tourbook.main import app
from tourbook.rate_limit import set_rate_limiter

DEFAULT_PASSWORD = "pass1234"


class RecordingMailer:
    """Stand-in for the SMTP mailer that remembers every reset link."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False
        self.error: Exception | None = None

    def send(self, email: str, reset_url: str) -> bool:
        if self.error is not None:
            raise self.error
        if self.fail:
            return False
        self.sent.append((email, reset_url))
        return True

    @property
    def last_token(self) -> str:
        return self.sent[-1][1].rsplit("/", 1)[-1]


@pytest.fixture(scope="function")
def test_engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def mailer():
    return RecordingMailer()


@pytest.fixture(scope="function")
def client(test_engine, mailer):
    set_engine(test_engine)
    set_rate_limiter(None)

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[app_get_session] = override_get_session
    app.dependency_overrides[get_mailer] = lambda: mailer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_engine(None)
    set_rate_limiter(None)


@pytest.fixture(scope="function")
def session(test_engine):
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def make_user(test_engine):
    def _make(
        email: str = "user@example.com",
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.USER,
        name: str = "Test User",
        active: bool = True,
    ) -> User:
        with Session(test_engine) as s:
            return repository.create(
                s,
                User(
                    name=name,
                    email=email,
                    role=role,
                    hashed_password=hash_password(password),
                    active=active,
                ),
            )

    return _make


@pytest.fixture(scope="function")
def auth_headers():
    def _headers(user_id: int, **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, **kwargs)}"}

    return _headers


@pytest.fixture(scope="function")
def fetch_user(test_engine):
    """Read a user row in a fresh session, bypassing the active filter."""

    def _fetch(user_id: int) -> User | None:
        with Session(test_engine) as s:
            return repository.find_by_id(s, user_id, include_inactive=True)

    return _fetch
