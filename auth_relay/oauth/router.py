"""
OAuth2 relay endpoints.

Implements the browser-facing half of the Spotify Authorization Code flow:
- GET /api/login - Mint a state token and redirect to Spotify's consent page
- GET /callback - Validate state, exchange the code, hand tokens to the app
- GET /api/refresh_token - Exchange a refresh token for a new access token

Tokens are never stored here. They go back to the browser application in a
URL fragment (callback) or a JSON body (refresh).
"""

import logging
from typing import Annotated
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Cookie, Query, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from auth_relay.core.exceptions import TokenExchangeError
from auth_relay.infrastructure.spotify_token_client import SpotifyTokenClient
from auth_relay.oauth.config import (
    RelayConfig,
    STATE_COOKIE_MAX_AGE,
    STATE_COOKIE_NAME,
    STATE_TOKEN_LENGTH,
)
from auth_relay.oauth.dependencies import Config, TokenClient
from auth_relay.oauth.models import ErrorResponse, RefreshResponse
from auth_relay.oauth.state import generate_state_token, state_matches


logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

LOGIN_PATH = "/api/login"
CALLBACK_PATH = "/callback"
REFRESH_PATH = "/api/refresh_token"

# Only GET is served; HEAD is refused too so it never mints state or spends a code
NON_RETRIEVAL_METHODS = [
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "TRACE",
    "CONNECT",
]

STATE_MISMATCH = "state_mismatch"
INVALID_TOKEN = "invalid_token"


def _error_redirect(
    config: RelayConfig,
    error: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
) -> RedirectResponse:
    """Redirect back to the application with an error indicator in the fragment."""
    return RedirectResponse(
        url=config.app_url(urlencode({"error": error})),
        status_code=status_code,
    )


def _allow_any_origin(response: Response) -> None:
    response.headers["Access-Control-Allow-Origin"] = "*"


# =============================================================================
# Login Initiator
# =============================================================================


@router.get(LOGIN_PATH)
async def login(config: Config):
    """
    Start the Spotify authorization flow.

    Mints a single-use state token, stores it in a cookie on the browser,
    and redirects to Spotify's authorize endpoint with the same token.

    Returns:
        302 redirect to Spotify's consent page
    """
    state = generate_state_token(STATE_TOKEN_LENGTH)

    query = urlencode(
        {
            "response_type": "code",
            "client_id": config.client_id,
            "scope": config.scope,
            "redirect_uri": config.redirect_uri,
            "state": state,
        },
        quote_via=quote,
    )

    logger.info("Starting Spotify authorization flow")

    response = RedirectResponse(
        url=f"{config.authorize_url}?{query}",
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        STATE_COOKIE_NAME,
        state,
        max_age=STATE_COOKIE_MAX_AGE,
        expires=STATE_COOKIE_MAX_AGE,
        path="/",
        secure=config.secure_cookies,
        httponly=True,
        samesite="lax",
    )
    _allow_any_origin(response)
    return response


# =============================================================================
# Callback Exchanger
# =============================================================================


@router.get(CALLBACK_PATH)
async def callback(
    config: Config,
    token_client: TokenClient,
    code: Annotated[str, Query()] = "",
    state: Annotated[str, Query()] = "",
    error: Annotated[str | None, Query()] = None,
    stored_state: Annotated[str | None, Cookie(alias=STATE_COOKIE_NAME)] = None,
):
    """
    Handle the redirect back from Spotify.

    The returned state must equal the cookie set by /api/login. A mismatch is
    rejected before any token request is made. Once matched, the cookie is
    expired whatever happens next.

    Returns:
        303 redirect to the application with access_token and refresh_token
        in the URL fragment, or an error redirect carrying
        error=state_mismatch / error=invalid_token
    """
    if stored_state is None:
        logger.warning("State cookie missing from callback request")
        stored_state = ""

    if not state_matches(state, stored_state):
        logger.warning(
            "Rejecting callback with mismatched state",
            extra={"extra_fields": {"state_present": bool(state)}},
        )
        return _error_redirect(config, STATE_MISMATCH)

    if error:
        # Spotify reports a declined consent as ?error=access_denied
        logger.warning(
            f"Spotify returned authorization error: {error}",
            extra={"extra_fields": {"provider_error": error}},
        )
        response = _error_redirect(config, error, status.HTTP_303_SEE_OTHER)
    else:
        response = await _exchange_code(config, token_client, code)

    response.delete_cookie(
        STATE_COOKIE_NAME,
        path="/",
        secure=config.secure_cookies,
        httponly=True,
        samesite="lax",
    )
    return response


async def _exchange_code(
    config: RelayConfig, token_client: SpotifyTokenClient, code: str
) -> RedirectResponse:
    try:
        tokens = await token_client.exchange_code(code)
    except TokenExchangeError as e:
        logger.error(f"Code exchange failed: {e}")
        return _error_redirect(config, INVALID_TOKEN)

    logger.info("Authorization code exchanged for tokens")

    # Fragment, not query: fragments are never sent to servers or their logs
    fragment = urlencode(
        {
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
        }
    )
    return RedirectResponse(
        url=config.app_url(fragment),
        status_code=status.HTTP_303_SEE_OTHER,
    )


# =============================================================================
# Refresh Exchanger
# =============================================================================


@router.get(
    REFRESH_PATH,
    response_model=RefreshResponse,
    response_model_exclude_none=True,
    responses={status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse}},
)
async def refresh(
    response: Response,
    token_client: TokenClient,
    refresh_token: Annotated[str, Query(min_length=1)],
):
    """
    Exchange a refresh token for a new access token.

    Refresh tokens may be reused; each call is an independent exchange.

    Returns:
        {"access_token": "..."} on success, plus refresh_token when Spotify
        rotates it; 502 {"error": "invalid_token"} on any upstream failure
    """
    try:
        refreshed = await token_client.refresh_access_token(refresh_token)
    except TokenExchangeError as e:
        logger.error(f"Refresh exchange failed: {e}")
        failure = JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": INVALID_TOKEN},
        )
        _allow_any_origin(failure)
        return failure

    logger.info("Refresh token exchanged for new access token")

    _allow_any_origin(response)
    return RefreshResponse(
        access_token=refreshed.access_token,
        refresh_token=refreshed.refresh_token,
    )


# =============================================================================
# Method guard
# =============================================================================


async def reject_method(config: Config):
    """Answer non-retrieval requests with a forbidden redirect to the application."""
    return RedirectResponse(
        url=config.app_url(),
        status_code=status.HTTP_403_FORBIDDEN,
    )


for _path in (LOGIN_PATH, CALLBACK_PATH, REFRESH_PATH):
    router.add_api_route(
        _path,
        reject_method,
        methods=NON_RETRIEVAL_METHODS,
        include_in_schema=False,
    )
