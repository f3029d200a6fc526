"""Shared test fixtures for the veto client."""

import httpx
import pytest

from fake_match_server import FakeMatchServer
from fakes import FakePushChannel
from map_veto.repositories.credential_store import InMemoryCredentialStore
from map_veto.routing import RecordingNavigator
from map_veto.services.match_client import MatchApiClient


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def server():
    return FakeMatchServer()


@pytest.fixture
async def api(server):
    """API client talking to the fake match server in-process."""
    client = MatchApiClient(
        "http://test/api",
        timeout=5.0,
        max_retries=2,
        retry_backoff=0.0,
        transport=httpx.ASGITransport(app=server.app),
    )
    yield client
    await client.close()


@pytest.fixture
def channel():
    return FakePushChannel()


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def navigator():
    return RecordingNavigator()
