"""
Fixtures for API tests.

Requests go through the ASGI app with httpx. The lifespan is not run, so the
database comes from the shared ``db`` fixture and authentication is replaced
through ``app.dependency_overrides``.
"""

import httpx
import pytest

from timehatch.api.app import create_app
from timehatch.core.auth.fastapi_users import current_active_user


@pytest.fixture
def app():
    """A fresh application, so in-memory rate limits start empty."""
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app, db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def authenticated(app, user):
    """Treat every request as coming from ``user``."""
    app.dependency_overrides[current_active_user] = lambda: user
    return user
