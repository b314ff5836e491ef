"""
Anti-forgery state tokens for the authorization round trip.

The token is minted by the login endpoint, parked in a browser cookie, and
must come back unchanged in the provider's callback. There is no server-side
store; the cookie is the store.
"""

import hmac
import string

from authlib.common.security import generate_token


STATE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_state_token(length: int = 16) -> str:
    """
    Generate a random state token.

    Uses authlib's token generator, which draws from random.SystemRandom.

    Args:
        length: Number of characters to produce

    Returns:
        A string of `length` characters from STATE_ALPHABET

    Raises:
        ValueError: If length is not positive
    """
    if length <= 0:
        raise ValueError(f"State token length must be positive (got {length})")
    return generate_token(length, chars=STATE_ALPHABET)


def state_matches(returned: str | None, stored: str | None) -> bool:
    """Compare the callback's state with the cookie value in constant time."""
    if not returned or not stored:
        return False
    return hmac.compare_digest(returned.encode(), stored.encode())
