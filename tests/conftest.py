from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from backend.config import Settings
from backend.deps import Services
from backend.models import Principal, Role
from backend.server import create_app

SUPERADMIN_EMAIL = "root@eco.test"
SUPERADMIN_PASSWORD = "root-pass"
JWT_SECRET = "test-secret"


def expired_token(user_id):
    """A correctly signed token for user_id that expired a minute ago."""
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)}
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


class FakeClock:
    """Strictly increasing timestamps, one second apart."""

    def __init__(self, start=datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    return AsyncMongoMockClient()["ecowarrior_test"]


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=JWT_SECRET,
        superadmin_email=SUPERADMIN_EMAIL,
        superadmin_password=SUPERADMIN_PASSWORD,
        superadmin_username="Root",
    )


@pytest.fixture
async def services(anyio_backend, settings, db, clock):
    services = Services.build(settings, db, clock=clock)
    await services.store.ensure_indexes()
    return services


@pytest.fixture
def store(services):
    return services.store


@pytest.fixture
def make_user(services):
    async def make(username, role=Role.USER):
        user = await services.store.create_user(f"{username}@eco.test", "unused-hash", username, role)
        return Principal(id=user.id, email=user.email, username=user.username, role=user.role)
    return make


@pytest.fixture
def app(settings, db, clock):
    return create_app(settings, database=db, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
