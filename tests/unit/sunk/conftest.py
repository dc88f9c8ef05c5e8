"""Shared fixtures for Subsonic client unit tests."""

from typing import Callable, List

import httpx
import pytest

from src.sunk.client import AsyncSubsonicClient, SubsonicClient
from src.sunk.models import SubsonicConfig


@pytest.fixture
def valid_config():
    """Return a valid SubsonicConfig for testing."""
    return SubsonicConfig(
        url="https://music.example.com",
        username="testuser",
        password="testpass",
        client_name="test-client",
        api_version="1.16.1",
    )


@pytest.fixture
def legacy_config():
    """Config for a server older than token authentication (plaintext p=)."""
    return SubsonicConfig(
        url="https://music.example.com",
        username="testuser",
        password="testpass",
        client_name="test-client",
        api_version="1.12.0",
    )


@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    """Collects every request the mock transport receives."""
    return []


@pytest.fixture
def make_client(valid_config, requests_seen) -> Callable[..., SubsonicClient]:
    """Factory building a SubsonicClient backed by httpx.MockTransport.

    Usage: make_client(handler) where handler(request) -> httpx.Response.
    """
    created = []

    def factory(handler, config=None):
        def recording_handler(request):
            requests_seen.append(request)
            return handler(request)

        http_client = httpx.Client(transport=httpx.MockTransport(recording_handler))
        client = SubsonicClient(config or valid_config, http_client=http_client)
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()


@pytest.fixture
def make_async_client(valid_config, requests_seen) -> Callable[..., AsyncSubsonicClient]:
    """Factory building an AsyncSubsonicClient backed by httpx.MockTransport."""

    def factory(handler, config=None):
        def recording_handler(request):
            requests_seen.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return AsyncSubsonicClient(config or valid_config, http_client=http_client)

    return factory
