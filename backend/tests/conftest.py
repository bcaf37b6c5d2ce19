import os

# Settings are read at import time; configure before importing movieapi.*.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
# Minimum bcrypt cost keeps the suite fast.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from movieapi.core.base import Base
from movieapi.core.database import get_db
from movieapi.core.security import PasswordHasher
from movieapi.core.tokens import TokenIssuer, get_token_issuer
from movieapi.services.sessions import SessionManager
from movieapi.services.users import CredentialStore

# Import models so they register with SQLAlchemy metadata.
from movieapi.models.user import User  # noqa: F401

TEST_SECRET = "test_jwt_secret"
START_EPOCH = 1_700_000_000


class FakeClock:
    """Deterministic epoch-seconds clock for the token issuer."""

    def __init__(self, now: int = START_EPOCH) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # StaticPool keeps one in-memory DB for the whole run; reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def issuer(clock):
    return TokenIssuer(TEST_SECRET, clock=clock)


@pytest.fixture(scope="session")
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def store(db_session):
    return CredentialStore(db_session)


@pytest.fixture()
def sessions(store, hasher, issuer):
    return SessionManager(store, hasher, issuer)


@pytest.fixture()
def app(db_session, issuer):
    from movieapi.main import app as fastapi_app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_token_issuer] = lambda: issuer
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def registered_user(store, hasher):
    """
    An existing user with no session yet.
    """
    return store.create("test@example.com", hasher.hash("test_password_123"))


@pytest.fixture()
def login(client):
    """
    Log in over HTTP and return the parsed token pair.

    Usage:
        body = login("test@example.com", "test_password_123")
    """

    def _login(email: str, password: str, **ttls) -> dict:
        payload = {"email": email, "password": password}
        payload.update(ttls)
        res = client.post("/users/login", json=payload)
        assert res.status_code == 200, res.text
        return res.json()

    return _login
