"""
Pytest configuration and fixtures for TimeHatch tests.

Database fixtures run Tortoise ORM against an in-memory SQLite database so
that no external service is needed. Redis and Stripe are always mocked.
"""

import os

# Must be set before timehatch is imported: the package configures logging
# from the environment at import time.
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("DB_DSN", "sqlite://:memory:")
os.environ.setdefault("LOG_JSON_OUTPUT", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from tortoise import Tortoise  # noqa: E402

from timehatch.core.auth.tortoise_models import User  # noqa: E402
from timehatch.core.cache import RedisCache  # noqa: E402
from timehatch.core.config import reload_config  # noqa: E402
from timehatch.core.database import MODEL_MODULES  # noqa: E402
from timehatch.core.security.client_info import ClientInfo  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_config():
    """Give every test a configuration read from the current environment."""
    config = reload_config()
    yield config
    reload_config()


@pytest.fixture
async def db():
    """Initialize Tortoise ORM on an empty in-memory SQLite database."""
    await Tortoise.init(
        config={
            "connections": {"default": "sqlite://:memory:"},
            "apps": {
                "models": {
                    "models": MODEL_MODULES,
                    "default_connection": "default",
                }
            },
            "use_tz": True,
            "timezone": "UTC",
        }
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
async def user(db):
    """A registered, active user."""
    return await User.create(
        email=f"user-{uuid4().hex[:8]}@example.com",
        hashed_password="not-a-real-hash",
    )


@pytest.fixture
async def other_user(db):
    """A second user for ownership checks."""
    return await User.create(
        email=f"other-{uuid4().hex[:8]}@example.com",
        hashed_password="not-a-real-hash",
    )


@pytest.fixture
def client_info():
    """Caller identity used by the security services."""
    return ClientInfo(
        ip_address="203.0.113.42",
        user_agent=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) "
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"
        ),
    )


@pytest.fixture
def mock_cache():
    """Cache double that always misses."""
    cache = MagicMock(spec=RedisCache)
    cache.get.return_value = None
    cache.set.return_value = True
    cache.health_check.return_value = True
    return cache


# Test markers
def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "/api/" in path:
            item.add_marker(pytest.mark.api)
        elif "/unit/" in path:
            item.add_marker(pytest.mark.unit)
