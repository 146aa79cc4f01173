"""Main conftest.py shared by every test layer."""

import os

# Set test environment variables before the app reads its settings
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["APP_DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["ENVIRONMENT"] = "test"

from unittest.mock import AsyncMock, Mock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.rate_limiter import RateLimiter, get_rate_limiter  # noqa: E402
from app.db.db import get_engine, get_session_local  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Base,
    Car,
    CarPhoto,
    Conversation,
    Message,
    Notification,
    User,
)


@pytest.fixture(scope="session")
def test_engine():
    """Create the schema once per session on the app's engine."""
    engine = get_engine()
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="session")
def test_session_factory(test_engine):
    """The app's session factory, bound to the test engine."""
    return get_session_local()


@pytest.fixture(autouse=True)
def clean_db(test_session_factory):
    """Automatically clean database state before each test."""
    # Delete all data in reverse dependency order
    with test_session_factory() as session:
        session.query(Notification).delete()
        session.query(Message).delete()
        session.query(Conversation).delete()
        session.query(CarPhoto).delete()
        session.query(Car).delete()
        session.query(User).delete()
        session.commit()


@pytest.fixture
def make_user(test_session_factory):
    """Factory inserting a user; its session is closed right away."""

    def _make(user_id=None, firstname="Test", name="User", phone="0600000000"):
        user = User(
            id=user_id,
            firstname=firstname,
            name=name,
            email=f"{firstname.lower()}-{uuid4().hex[:8]}@example.com",
            phone=phone,
        )
        with test_session_factory() as session:
            session.add(user)
            session.commit()
        return user

    return _make


@pytest.fixture
def make_car(test_session_factory):
    """Factory inserting a car listing with optional photos."""

    def _make(owner_id, car_id=None, title="Peugeot 208 GT Line", photos=()):
        car = Car(id=car_id, title=title, brand="Peugeot", added_by_id=owner_id)
        with test_session_factory() as session:
            session.add(car)
            session.flush()
            for url in photos:
                session.add(CarPhoto(car_id=car.id, photo_url=url))
            session.commit()
        return car

    return _make


@pytest.fixture
def sample_users(make_user):
    """A seller and two buyers."""
    return [
        make_user(firstname="Alice", name="Martin", phone="0611111111"),
        make_user(firstname="Bob", name="Durand", phone="0622222222"),
        make_user(firstname="Charlie", name="Bernard", phone="0633333333"),
    ]


@pytest.fixture
def sample_car(make_car, sample_users):
    """A car listed by the first sample user."""
    return make_car(
        sample_users[0].id,
        photos=(
            "https://cdn.example.com/cars/1-front.jpg",
            "https://cdn.example.com/cars/1-back.jpg",
        ),
    )


@pytest.fixture
def allow_all_rate_limiter():
    """Rate limiter stub that never throttles and has no Redis behind it."""
    limiter = Mock(spec=RateLimiter)
    limiter.check_user_rate_limit = AsyncMock(return_value=True)
    limiter.ping.return_value = False
    return limiter


@pytest.fixture
def client(allow_all_rate_limiter):
    """Test client with the lifespan running, so the presence registry exists."""
    app.dependency_overrides[get_rate_limiter] = lambda: allow_all_rate_limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
