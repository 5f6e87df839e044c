import os
import time

import jwt
import pytest

os.environ.setdefault("SERVICE_AUTH_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "testing")

from fastapi.testclient import TestClient

from unilink.app import create_fastapi_app
from unilink.config.settings import Config
from unilink.infrastructure.realtime.notification_bus import NotificationBus
from unilink.setup.ioc.container import (
    HandlersProvider,
    LocalNotifierProvider,
    RealtimeProvider,
    create_container,
)

from tests.fakes import (
    InMemoryMessageRepository,
    InMemoryPersistenceProvider,
    InMemoryUserRepository,
    make_user,
)


def _service_token(sub="alice", email=None, ttl=300, secret=None):
    now = int(time.time())
    return jwt.encode(
        {
            "sub": sub,
            "email": email or f"{sub}@example.edu",
            "iat": now,
            "exp": now + ttl,
            "iss": Config.SERVICE_AUTH_ISSUER,
            "aud": Config.SERVICE_AUTH_AUDIENCE,
        },
        secret or Config.SERVICE_AUTH_SECRET,
        algorithm="HS256",
    )


@pytest.fixture()
def service_token():
    return _service_token


@pytest.fixture()
def headers_for():
    """Authorization headers for any user id."""

    def _headers(sub: str) -> dict:
        return {"Authorization": f"Bearer {_service_token(sub)}"}

    return _headers


@pytest.fixture()
def auth_headers(headers_for):
    """Authentication headers with valid JWT token (user "alice")."""
    return headers_for("alice")


@pytest.fixture()
def users():
    return InMemoryUserRepository(
        [
            make_user("alice", first_name="Alice", last_name="Ng", email="alice@example.edu"),
            make_user("bob", first_name="Bob", role="alumni", university="KTH"),
            make_user("carol", first_name="Carol", role="faculty", title="Lecturer"),
        ]
    )


@pytest.fixture()
def messages(users):
    return InMemoryMessageRepository(users)


@pytest.fixture()
def bus():
    return NotificationBus(auth_timeout=5, max_unauthenticated=10, send_buffer_size=10)


@pytest.fixture()
def make_app(bus, users, messages):
    """Build an app on in-memory persistence; arguments replace the defaults."""

    def _make(message_repository=None, notification_bus=None):
        container = create_container(
            RealtimeProvider(notification_bus or bus),
            LocalNotifierProvider(),
            InMemoryPersistenceProvider(message_repository or messages, users),
            HandlersProvider(),
        )
        return create_fastapi_app(container)

    return _make


@pytest.fixture()
def app(make_app):
    """Create and configure a new FastAPI app instance for each test."""
    return make_app()


@pytest.fixture()
def client(app):
    """A test client for the FastAPI app; lifespan runs for the whole test."""
    with TestClient(app) as client:
        yield client
