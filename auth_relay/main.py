"""
FastAPI application for the Spotify authorization relay.

This module wires routers and configures the application.
Endpoint logic is in auth_relay/oauth, the token client in
auth_relay/infrastructure.
"""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from auth_relay.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request  # noqa: E402
from fastapi.encoders import jsonable_encoder  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from starlette.status import HTTP_422_UNPROCESSABLE_CONTENT  # noqa: E402

from auth_relay.oauth import router as oauth_router  # noqa: E402
from auth_relay.oauth.config import get_relay_config  # noqa: E402

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Resolves the configuration at startup so missing credentials stop the
    process before it accepts requests.
    """
    config = get_relay_config()
    logger.info(
        "Application starting up...",
        extra={"extra_fields": {"port": config.port}},
    )
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Spotify Authorization Relay",
    description="Server-side Authorization Code flow relay for a browser client",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (e.g. missing refresh_token).

    Returns 422 with a machine-readable error indicator.
    """
    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"extra_fields": {"path": request.url.path}},
    )

    # Drop the offending input; it may be a token
    details = [
        {key: value for key, value in err.items() if key not in ("input", "ctx")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_CONTENT,
        content={
            "error": "invalid_request",
            "details": jsonable_encoder(details),
        },
        # The browser app calls these endpoints cross-origin and must read errors too
        headers={"Access-Control-Allow-Origin": "*"},
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "spotify-auth-relay",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(oauth_router.router)
