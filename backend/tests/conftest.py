import os
from datetime import datetime, timedelta, timezone

# Settings are read at import time; set everything before importing chirpy.
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("POLKA_KEY", "test_polka_key")
os.environ.setdefault("DB_URL", "sqlite+pysqlite:///:memory:")
# Cheap argon2 parameters keep the suite fast; the format is unchanged.
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chirpy.core.base import Base
from chirpy.core.database import get_db
from chirpy.services.users import create_user

# Import models so they register with SQLAlchemy metadata.
from chirpy.models.user import User  # noqa: F401
from chirpy.models.refresh_token import RefreshToken  # noqa: F401

TEST_PASSWORD = "test_password_123"


class FrozenClock:
    """
    Injectable clock. Starts at the real current time so tokens it stamps still
    pass python-jose's own exp check, and only moves when told to.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.current = (start or datetime.now(timezone.utc)).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


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
    # The in-memory DB persists across tests (StaticPool); reset schema per test.
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
    return FrozenClock()


@pytest.fixture()
def app(db_session):
    import chirpy.main as main

    fastapi_app = main.app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def users(db_session):
    """
    Two distinct accounts sharing the same password.
    """
    user_a = create_user(db_session, "test@example.com", TEST_PASSWORD)
    user_b = create_user(db_session, "other@example.com", TEST_PASSWORD)
    return user_a, user_b


@pytest.fixture()
def user(users):
    return users[0]
