"""
Shared fixtures.

Argon2 cost parameters are turned down so hashing stays fast in tests.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-jwt-testing-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient

from franchise_auth.api.app import create_app
from franchise_auth.auth.jwt import TokenService
from franchise_auth.auth.passwords import CredentialHasher
from franchise_auth.config import Settings
from franchise_auth.services.admin import AdminService
from franchise_auth.services.auth import AuthService
from franchise_auth.services.notification import NotificationPublisher
from franchise_auth.services.seed import seed_roles
from franchise_auth.storage import create_local_storage


TEST_SECRET = "test-secret-key-for-jwt-testing-0123456789"


def make_settings(**overrides) -> Settings:
    values = dict(
        _env_file=None,
        environment="test",
        log_level="DEBUG",
        jwt_secret_key=TEST_SECRET,
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
        app_url="http://localhost:3000",
    )
    values.update(overrides)
    return Settings(**values)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings_factory():
    """Build Settings with test defaults plus overrides."""
    return make_settings


@pytest.fixture
def settings():
    """Fast, isolated settings."""
    return make_settings()


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return create_local_storage()


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def hasher(settings):
    return CredentialHasher(settings)


@pytest.fixture
async def auth_service(storage, tokens, hasher, settings):
    """AuthService over seeded in-memory storage."""
    await seed_roles(storage.accounts)
    notifications = NotificationPublisher(storage.queue, settings)
    service = AuthService(storage, tokens, hasher, notifications)
    yield service
    await service.drain()


@pytest.fixture
def admin_service(auth_service):
    return AdminService(auth_service)


@pytest.fixture
def admin_settings():
    """Settings with a bootstrap administrator."""
    return make_settings(
        admin_email="root@example.com",
        admin_username="root",
        admin_password="root-password",
    )


@pytest.fixture
def client(admin_settings, storage):
    """TestClient with lifespan (seeding + admin bootstrap) run."""
    app = create_app(settings=admin_settings, storage=storage)
    with TestClient(app) as test_client:
        yield test_client
