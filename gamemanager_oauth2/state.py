"""Anti-CSRF state tokens for the authorization-code flow."""

import secrets

STATE_BYTES = 32


def generate_state_token() -> str:
    """Get an unguessable, URL-safe state value.

    ``secrets`` draws from the OS CSPRNG and raises if it is unavailable, so
    a failure here fails the request rather than yielding a weak token.
    """
    return secrets.token_urlsafe(STATE_BYTES)
