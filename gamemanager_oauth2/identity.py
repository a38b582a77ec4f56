"""Client for the Google authorization-code grant."""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from .domain import ProviderProfile, ProviderToken
from .exceptions import ExchangeFailure, ProfileFetchFailure, \
    ProviderNotConfigured

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]

DEFAULT_TIMEOUT = 15.0


class IdentityExchanger:
    """Talks to the identity provider on behalf of the login flow.

    Every call is a single attempt. Retries, if any, are the business of
    ``transport``.
    """

    def __init__(self, client_id: str, client_secret: str, redirect_url: str,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 auth_url: str = GOOGLE_AUTH_URL,
                 token_url: str = GOOGLE_TOKEN_URL,
                 userinfo_url: str = GOOGLE_USERINFO_URL):
        self.client_id = client_id
        self._client_secret = client_secret
        self.redirect_url = redirect_url
        self._transport = transport
        self._timeout = timeout
        self.auth_url = auth_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self._client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def build_authorization_url(self, state: str) -> str:
        """URL to send the browser to, carrying ``state``."""
        if not self.is_configured:
            raise ProviderNotConfigured('Google OAuth client id/secret not set')
        query = urlencode({
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "scope": " ".join(SCOPES),
            "state": state,
        })
        return f"{self.auth_url}?{query}"

    async def exchange_code(self, code: str) -> ProviderToken:
        """Trade an authorization code for an access token."""
        payload = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "redirect_uri": self.redirect_url,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as e:
            raise ExchangeFailure(f'Network error during token exchange: {e}') from e

        if not response.is_success:
            # The body may echo the code or secrets back; only log the status.
            raise ExchangeFailure(f'Token endpoint returned HTTP {response.status_code}')

        try:
            return ProviderToken.model_validate(response.json())
        except ValueError as e:
            raise ExchangeFailure('Malformed token response') from e

    async def fetch_profile(self, token: ProviderToken) -> ProviderProfile:
        """Get the user's profile with the access token."""
        headers = {"Authorization": f"Bearer {token.access_token}"}
        try:
            async with self._client() as client:
                response = await client.get(self.userinfo_url, headers=headers)
        except httpx.HTTPError as e:
            raise ProfileFetchFailure(f'Network error fetching user info: {e}') from e

        if not response.is_success:
            raise ProfileFetchFailure(f'Userinfo endpoint returned HTTP {response.status_code}')

        try:
            data = response.json()
        except ValueError as e:
            raise ProfileFetchFailure('User info is not JSON') from e
        if not isinstance(data, dict):
            raise ProfileFetchFailure('User info is not an object')
        try:
            return ProviderProfile.model_validate(data)
        except ValidationError as e:
            raise ProfileFetchFailure('User info lacks required fields') from e
