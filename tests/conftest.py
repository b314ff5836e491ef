"""
Shared test configuration and fixtures.
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Credentials must exist before the app module is imported
with patch.dict(
    os.environ,
    {
        "CLIENT_ID": "test-client-id",
        "CLIENT_SECRET": "test-client-secret",
        "PORT": "8080",
    },
):
    from auth_relay.main import app
    from auth_relay.oauth.config import RelayConfig, get_relay_config


TEST_CONFIG = RelayConfig(
    client_id="test-client-id",
    client_secret="test-client-secret",
    port=8080,
)

# Inject the test configuration instead of reading the environment
app.dependency_overrides[get_relay_config] = lambda: TEST_CONFIG

client = TestClient(app)


def make_token_response(status_code: int = 200, payload=None) -> MagicMock:
    """Build a stand-in for an httpx.Response from the token endpoint."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def relay_config() -> RelayConfig:
    """The configuration injected into every endpoint."""
    return TEST_CONFIG


@pytest.fixture
def fresh_client():
    """Test client with an empty cookie jar."""
    return TestClient(app)


@pytest.fixture
def mock_token_post():
    """
    Stub the Spotify token endpoint.

    Patches httpx.AsyncClient.post so no request leaves the process. Tests
    set return_value or side_effect, and assert on calls.
    """
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
        yield mock_post
