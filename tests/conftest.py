"""Pytest configuration and shared fixtures.

Settings are read once and cached, so the environment is pinned here before
anything from ``churchadmin`` is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_HOST"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from churchadmin.api.deps import get_db  # noqa: E402
from churchadmin.api.main import app  # noqa: E402
from churchadmin.core.security import create_access_token  # noqa: E402
from churchadmin.db.base import Base  # noqa: E402
from churchadmin.db.seed import seed_default_roles  # noqa: E402
from churchadmin.services.notifications import get_notifier  # noqa: E402

from tests import factories  # noqa: E402


class FakeNotifier:
    """Records outgoing email instead of sending it."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent = []

    async def send_user_invite(self, **kwargs) -> bool:
        self.sent.append(("user_invite", kwargs))
        return self.deliver

    async def send_verification_email(self, **kwargs) -> bool:
        self.sent.append(("verify_email", kwargs))
        return self.deliver

    async def send_event_confirmation(self, **kwargs) -> bool:
        self.sent.append(("event_confirmation", kwargs))
        return self.deliver


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """A session on a fresh in-memory database with the system roles seeded."""
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    seed_default_roles(session)
    session.commit()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(db_session, notifier):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_token(db_session):
    """Issue a bearer token for a stored user, resolving permissions like login does."""
    from churchadmin.core.accounts import build_context

    def _make(user) -> str:
        return create_access_token(build_context(db_session, user))

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {make_token(user)}"}

    return _headers


@pytest.fixture
def admin_user(db_session):
    return factories.create_user(db_session, role="admin", email="admin@example.org")


@pytest.fixture
def admin_headers(auth_headers, admin_user):
    return auth_headers(admin_user)

