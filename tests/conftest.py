from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine, StaticPool

from app.main import app
from app.api.deps import get_clock, get_session
from app.core.clock import fixed_clock
from app.core.rate_limit import limiter
from app.models.models import Promotion
from factories import NOW

# In-memory database for the tests
DATABASE_URL = "sqlite://"


@pytest.fixture(name="session")
def session_fixture():
    # StaticPool keeps a single in-memory SQLite connection shared across threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="db_session")
def db_session_fixture(session):
    return session


@pytest.fixture(name="make_promotion")
def make_promotion_fixture(session: Session):
    """Persists a Promotion row with sensible defaults."""
    def _make(**overrides) -> Promotion:
        data = {
            "name": "Promo",
            "active": True,
            "start_date": NOW - timedelta(days=7),
            "config": {"kind": "percentage", "value": 10, "applies_to": "total"},
        }
        data.update(overrides)
        promo = Promotion(**data)
        session.add(promo)
        session.commit()
        session.refresh(promo)
        return promo
    return _make


@pytest.fixture(name="client")
def client_fixture(session: Session):
    # Point the app at the test database and a frozen clock
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_clock] = lambda: fixed_clock(NOW)
    limiter.enabled = False
    client = TestClient(app)
    yield client
    limiter.enabled = True
    app.dependency_overrides.clear()
