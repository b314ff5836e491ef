"""
OAuth2 relay configuration.

Holds the Spotify client credentials and the fixed values registered with the
Spotify developer console. Loaded from environment variables once at startup
and validated immediately so a bad deployment fails fast.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse


logger = logging.getLogger(__name__)


# Spotify accounts service endpoints
SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

# These must match the Spotify developer console exactly (trailing slashes too)
DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"
DEFAULT_APP_ORIGIN = "http://localhost:8081"
DEFAULT_SCOPE = (
    "user-read-private "
    "user-read-email "
    "user-read-playback-state "
    "user-modify-playback-state "
    "playlist-modify-public"
)

DEFAULT_TOKEN_REQUEST_TIMEOUT = 10.0

STATE_COOKIE_NAME = "spotify_auth_state"
STATE_TOKEN_LENGTH = 16
# One year; the single-use rule is enforced by the callback, not by expiry
STATE_COOKIE_MAX_AGE = 365 * 24 * 60 * 60


def _parse_port(raw: str) -> int:
    """Parse PORT, accepting both "8080" and the ":8080" listen-address form."""
    value = raw.strip()
    if value.startswith(":"):
        value = value[1:]

    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {raw!r})") from None

    if not 0 < port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535 (got {port})")
    return port


def _is_absolute_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class RelayConfig:
    """
    Relay configuration settings.

    Required environment variables:
    - CLIENT_ID, CLIENT_SECRET: Spotify application credentials
    - PORT: Listen port

    Optional:
    - REDIRECT_URI: Callback URL registered with Spotify
    - APP_ORIGIN: Browser application that receives the tokens
    - SPOTIFY_SCOPE: Space-delimited scope list
    - TOKEN_REQUEST_TIMEOUT: Seconds to wait for the token endpoint
    """

    client_id: str
    client_secret: str
    port: int
    redirect_uri: str = DEFAULT_REDIRECT_URI
    app_origin: str = DEFAULT_APP_ORIGIN
    scope: str = DEFAULT_SCOPE
    authorize_url: str = SPOTIFY_AUTHORIZE_URL
    token_url: str = SPOTIFY_TOKEN_URL
    token_request_timeout: float = DEFAULT_TOKEN_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Load configuration from environment variables."""
        timeout_raw = os.getenv("TOKEN_REQUEST_TIMEOUT", "")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TOKEN_REQUEST_TIMEOUT
        except ValueError:
            raise ValueError(
                f"TOKEN_REQUEST_TIMEOUT must be a number (got {timeout_raw!r})"
            ) from None

        return cls(
            client_id=os.getenv("CLIENT_ID", ""),
            client_secret=os.getenv("CLIENT_SECRET", ""),
            port=_parse_port(os.getenv("PORT", "")),
            redirect_uri=os.getenv("REDIRECT_URI") or DEFAULT_REDIRECT_URI,
            app_origin=os.getenv("APP_ORIGIN") or DEFAULT_APP_ORIGIN,
            scope=os.getenv("SPOTIFY_SCOPE") or DEFAULT_SCOPE,
            token_request_timeout=timeout,
        )

    def validate(self) -> None:
        """Validate required configuration. Raises ValueError on the first problem."""
        if not self.client_id:
            raise ValueError("CLIENT_ID environment variable is required")
        if not self.client_secret:
            raise ValueError("CLIENT_SECRET environment variable is required")
        if not 0 < self.port < 65536:
            raise ValueError(f"PORT must be between 1 and 65535 (got {self.port})")
        if not _is_absolute_http_url(self.redirect_uri):
            raise ValueError(
                f"REDIRECT_URI must be an absolute http(s) URL (got {self.redirect_uri!r})"
            )
        if not _is_absolute_http_url(self.app_origin):
            raise ValueError(
                f"APP_ORIGIN must be an absolute http(s) URL (got {self.app_origin!r})"
            )
        if not self.scope.split():
            raise ValueError("SPOTIFY_SCOPE must name at least one scope")
        if self.token_request_timeout <= 0:
            raise ValueError("TOKEN_REQUEST_TIMEOUT must be positive")

    @property
    def secure_cookies(self) -> bool:
        """Mark cookies Secure when the callback itself is served over https."""
        return urlparse(self.redirect_uri).scheme == "https"

    def app_url(self, fragment: str = "") -> str:
        """Build a URL on the browser application, optionally with a fragment."""
        base = self.app_origin.rstrip("/")
        if not fragment:
            return base
        return f"{base}/#{fragment}"


@lru_cache()
def get_relay_config() -> RelayConfig:
    """Get relay configuration singleton."""
    config = RelayConfig.from_env()
    logger.info(
        "Relay configuration loaded",
        extra={
            "extra_fields": {
                "redirect_uri": config.redirect_uri,
                "app_origin": config.app_origin,
                "port": config.port,
            }
        },
    )
    return config
