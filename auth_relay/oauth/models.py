"""
Token models.

Pydantic models for the Spotify token endpoint responses and the refresh
endpoint's own response body.
"""

from pydantic import BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    """Tokens returned by the authorization_code grant."""

    access_token: str = Field(min_length=1, description="Bearer access token")
    refresh_token: str = Field(min_length=1, description="Refresh token")

    model_config = ConfigDict(extra="ignore")


class RefreshedToken(BaseModel):
    """Tokens returned by the refresh_token grant."""

    access_token: str = Field(min_length=1, description="New bearer access token")
    refresh_token: str | None = Field(
        default=None,
        description="Replacement refresh token, only sent when the provider rotates it",
    )

    model_config = ConfigDict(extra="ignore")


class RefreshResponse(BaseModel):
    """Response model for GET /api/refresh_token."""

    access_token: str = Field(description="New bearer access token")
    refresh_token: str | None = Field(
        default=None, description="Rotated refresh token, when issued"
    )


class ErrorResponse(BaseModel):
    """Machine-readable error body."""

    error: str = Field(description="Error indicator, e.g. invalid_token")
