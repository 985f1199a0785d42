"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from practicebase.core.config import Settings
from practicebase.infrastructure.api.app import create_app



@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, environment="testing", log_level="WARNING")


@pytest.fixture
def app(settings):
    """A fresh application with the bundled seed data."""
    return create_app(settings)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client for the application."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


async def _login(client: AsyncClient, email: str, password: str = "123456") -> str:
    """Log in a seeded user and return the access token."""
    response = await client.post(
        "/users/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()["accessToken"]


@pytest_asyncio.fixture
async def peter_headers(client) -> dict[str, str]:
    """Auth headers for the seeded user Peter."""
    return {"X-Authorization": await _login(client, "peter@abv.bg")}


@pytest_asyncio.fixture
async def george_headers(client) -> dict[str, str]:
    """Auth headers for the seeded user George."""
    return {"X-Authorization": await _login(client, "george@abv.bg")}
