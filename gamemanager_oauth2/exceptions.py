"""Exceptions."""

from fastapi import status


class LoginError(RuntimeError):
    """Base for every failure of the login flow.

    ``status_code`` and ``public_message`` are what the HTTP layer is allowed
    to show the caller. The message passed to the constructor, and any
    chained cause, stay in the server log.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = 'Login failed'


class ProviderNotConfigured(LoginError):
    """The identity provider client id or secret is not set."""

    public_message = 'Login provider is not configured'


class InvalidState(LoginError):
    """The callback state does not match the state cookie."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = 'Invalid state parameter'


class MissingCode(LoginError):
    """The callback carried no authorization code."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = 'Authorization code not provided'


class ExchangeFailure(LoginError):
    """Could not exchange the authorization code for a provider token."""

    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = 'Failed to exchange authorization code'


class ProfileFetchFailure(LoginError):
    """Could not get a usable profile from the provider."""

    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = 'Failed to get user info'


class UserPersistenceFailure(LoginError):
    """Could not find or create the local user."""

    public_message = 'Failed to create or find user'


class CredentialError(LoginError):
    """A session credential was rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = 'invalid_token'


class InvalidCredential(CredentialError):
    """The credential was never valid: malformed, forged, or wrong algorithm."""


class ExpiredCredential(CredentialError):
    """The credential was valid but its expiry has passed."""

    public_message = 'token_expired'
