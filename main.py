"""
Process entry point for the Spotify authorization relay.

Loads a .env file if present, builds the relay configuration (exiting on
missing or malformed settings), and serves the FastAPI app with uvicorn.
"""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from auth_relay.logging_config import setup_global_logging
from auth_relay.oauth.config import get_relay_config

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()
    setup_global_logging()

    try:
        config = get_relay_config()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info(f"Listening on port {config.port}...")
    uvicorn.run("auth_relay.main:app", host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
