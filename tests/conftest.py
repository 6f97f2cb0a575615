"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.helpers import CLIENT_ID, DEALER_ID, FakeOrderBackend, FakePushChannel


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def backend() -> FakeOrderBackend:
    return FakeOrderBackend()


@pytest.fixture
def channel() -> FakePushChannel:
    return FakePushChannel()


@pytest.fixture
def dealer_store(backend: FakeOrderBackend):
    return backend.store_for(DEALER_ID)


@pytest.fixture
def client_store(backend: FakeOrderBackend):
    return backend.store_for(CLIENT_ID)
