"""
FastAPI dependencies for OAuth endpoints.

Provides dependency injection for the relay configuration and token client.
Tests replace get_relay_config through app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends

from auth_relay.infrastructure.spotify_token_client import SpotifyTokenClient
from auth_relay.oauth.config import RelayConfig, get_relay_config


def get_token_client(
    config: Annotated[RelayConfig, Depends(get_relay_config)],
) -> SpotifyTokenClient:
    """Provide a token client bound to the current configuration."""
    return SpotifyTokenClient(config)


# Type aliases for cleaner dependency injection
Config = Annotated[RelayConfig, Depends(get_relay_config)]
TokenClient = Annotated[SpotifyTokenClient, Depends(get_token_client)]
