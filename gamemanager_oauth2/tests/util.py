"""Testing helpers."""
from typing import Any, Dict, List

import httpx

from ..identity import IdentityExchanger

SECRET = "testing_secret-long-enough-for-hs256-0123456789"

CLIENT_ID = "test-client-id.apps.googleusercontent.com"
CLIENT_SECRET = "test-client-secret"
REDIRECT_URL = "http://testserver/auth/callback"


class FakeGoogle:
    """Stands in for Google's token and userinfo endpoints."""

    def __init__(self):
        self.profile: Dict[str, Any] = {
            "id": "g-1",
            "email": "a@x.com",
            "verified_email": True,
            "name": "Ann",
            "picture": "https://lh3.googleusercontent.com/a/ann",
        }
        self.token_status = 200
        self.userinfo_status = 200
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.test-access-token",
                                             "token_type": "Bearer",
                                             "expires_in": 3599})
        if request.url.path == "/oauth2/v2/userinfo":
            if self.userinfo_status != 200:
                return httpx.Response(self.userinfo_status, json={"error": "unauthorized"})
            return httpx.Response(200, json=self.profile)
        return httpx.Response(404)

    def exchanger(self, client_id=CLIENT_ID, client_secret=CLIENT_SECRET) -> IdentityExchanger:
        # Late-bound so tests can swap ``handler`` on the instance.
        return IdentityExchanger(client_id, client_secret, REDIRECT_URL,
                                 transport=httpx.MockTransport(
                                     lambda request: self.handler(request)))
