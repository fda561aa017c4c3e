"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment before any app code runs
os.environ["ENV"] = "test"
os.environ["GOOGLE_API_KEY"] = "test-google-key"
os.environ["GENERATION_PROVIDER"] = "mock"

from tests.fixtures.upstreams import FakeUpstreams, scenario_upstreams  # noqa: E402


@pytest.fixture
def upstreams() -> FakeUpstreams:
    """Fake Google APIs; tests override individual hosts."""
    return scenario_upstreams()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    from api.config import get_settings

    get_settings.cache_clear()  # Use test env, not stale or .env values
    from api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
