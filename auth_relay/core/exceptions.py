"""
Domain exceptions for the token relay.

These are raised by the token client and translated into redirects or JSON
error bodies by the OAuth router.
"""


class TokenExchangeError(Exception):
    """
    Raised when a call to the provider's token endpoint fails.

    Covers transport errors and non-200 responses. The caller sees an
    invalid_token error, never the underlying detail.
    """

    pass


class MalformedTokenResponseError(TokenExchangeError):
    """
    Raised when the token endpoint answers 200 with an unusable body.

    The body was not JSON, or it lacked the expected token fields.
    """

    pass
