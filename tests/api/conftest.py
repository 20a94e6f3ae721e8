import httpx
import pytest_asyncio

from app import app
from db import get_session


@pytest_asyncio.fixture
async def client(test_session, redis_client):
    """HTTP client against the app, sharing the test session and fake Redis."""
    async def override_get_session():
        yield test_session

    app.dependency_overrides[get_session] = override_get_session
    app.state.redis = redis_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()
