"""
Client for the Spotify accounts service token endpoint.

Performs the two server-to-server grants the relay needs: exchanging an
authorization code for a token pair, and exchanging a refresh token for a new
access token. Both authenticate with HTTP Basic auth built from the client
credentials.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from auth_relay.core.exceptions import MalformedTokenResponseError, TokenExchangeError
from auth_relay.oauth.config import RelayConfig
from auth_relay.oauth.models import RefreshedToken, TokenPair


logger = logging.getLogger(__name__)

TokenModel = TypeVar("TokenModel", bound=BaseModel)


class SpotifyTokenClient:
    """Token endpoint client. Holds no state between calls."""

    def __init__(self, config: RelayConfig):
        self._config = config

    async def exchange_code(self, code: str) -> TokenPair:
        """
        Exchange an authorization code for an access/refresh token pair.

        Args:
            code: Authorization code from the provider callback

        Returns:
            The issued token pair

        Raises:
            TokenExchangeError: On network errors or a non-200 response
            MalformedTokenResponseError: If the response lacks either token
        """
        data = await self._request_token(
            {
                "code": code,
                "redirect_uri": self._config.redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        return self._parse(data, TokenPair)

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """
        Exchange a refresh token for a new access token.

        Refresh tokens are not single-use; the same one may be exchanged
        repeatedly.

        Raises:
            TokenExchangeError: On network errors or a non-200 response
            MalformedTokenResponseError: If the response lacks an access token
        """
        data = await self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )
        return self._parse(data, RefreshedToken)

    async def _request_token(self, form: dict[str, str]) -> Any:
        """POST a grant to the token endpoint and return the decoded JSON body."""
        grant_type = form["grant_type"]

        # The client (and its connection) is released on every exit path
        async with httpx.AsyncClient(timeout=self._config.token_request_timeout) as client:
            try:
                response = await client.post(
                    self._config.token_url,
                    data=form,
                    auth=httpx.BasicAuth(
                        self._config.client_id, self._config.client_secret
                    ),
                    headers={"Accept": "application/json"},
                )
            except httpx.RequestError as e:
                logger.error(
                    f"Network error calling token endpoint: {type(e).__name__}",
                    extra={"extra_fields": {"grant_type": grant_type}},
                )
                raise TokenExchangeError(f"Network error: {type(e).__name__}") from e

            if response.status_code != 200:
                logger.error(
                    f"Token endpoint returned status {response.status_code}",
                    extra={
                        "extra_fields": {
                            "grant_type": grant_type,
                            "status_code": response.status_code,
                        }
                    },
                )
                raise TokenExchangeError(
                    f"Token endpoint returned status {response.status_code}"
                )

            try:
                return response.json()
            except ValueError as e:
                logger.error(
                    "Token endpoint returned a non-JSON body",
                    extra={"extra_fields": {"grant_type": grant_type}},
                )
                raise MalformedTokenResponseError("Token response is not JSON") from e

    @staticmethod
    def _parse(data: Any, model: type[TokenModel]) -> TokenModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            # Field names only; the payload may carry live tokens
            missing = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.error(
                f"Token response failed validation: {missing or 'not an object'}",
                extra={"extra_fields": {"model": model.__name__}},
            )
            raise MalformedTokenResponseError(
                f"Token response missing or invalid fields: {missing}"
            ) from e
