"""API tests for the login service."""
from datetime import datetime, timedelta, timezone
from unittest import mock
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from pydantic import SecretStr

from gamemanager_oauth2.credentials import SignedCredentialService
from gamemanager_oauth2.db import SessionLocal
from gamemanager_oauth2.directory import UserDirectory
from gamemanager_oauth2.exceptions import UserPersistenceFailure
from gamemanager_oauth2.main import create_app
from gamemanager_oauth2.models import DBUser

COOKIE = "oauth_state"


def _login(client) -> str:
    """Start a login; returns the state the provider will echo back."""
    response = client.get("/auth/login", follow_redirects=False)
    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


def _users(client):
    session = SessionLocal(bind=client.app.extra["engine"])
    try:
        return session.query(DBUser).all()
    finally:
        session.close()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "healthy", "service": "game-manager"}


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Content-Security-Policy"] == "frame-ancestors 'none'"


def test_login_redirects_with_state_cookie(client):
    response = client.get("/auth/login", follow_redirects=False)
    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT

    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.google.com"
    state = parse_qs(location.query)["state"][0]
    assert len(state) >= 43

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}={state};")
    lowered = set_cookie.lower()
    assert "httponly" in lowered
    assert "max-age=600" in lowered
    assert "path=/auth" in lowered
    assert "samesite=lax" in lowered
    assert "secure" not in lowered


def test_login_cookie_secure_in_production(settings, google):
    production = settings.model_copy(update={
        "env": "production",
        "jwt_secret": SecretStr("a-real-production-secret-0123456789abcdef"),
    })
    client = TestClient(create_app(production, exchanger=google.exchanger()))
    response = client.get("/auth/login", follow_redirects=False)
    assert "secure" in response.headers["set-cookie"].lower()


def test_login_states_differ(client):
    assert _login(client) != _login(client)


def test_login_not_configured(settings, google):
    client = TestClient(create_app(
        settings, exchanger=google.exchanger(client_id="", client_secret="")))
    response = client.get("/auth/login", follow_redirects=False)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "location" not in response.headers
    assert "set-cookie" not in response.headers


def test_end_to_end(client, google, secret):
    """Login, callback, and a credential for a newly created user."""
    state = _login(client)
    before = int(datetime.now(tz=timezone.utc).timestamp())
    response = client.get("/auth/callback", params={"state": state, "code": "abc"})
    assert response.status_code == status.HTTP_200_OK

    data = response.json()
    user = data["user"]
    assert set(user) == {"id", "email", "name", "picture", "created_at"}
    assert user["email"] == "a@x.com"
    assert user["name"] == "Ann"
    assert "g-1" not in response.text

    rows = _users(client)
    assert len(rows) == 1
    assert rows[0].id == user["id"]
    assert rows[0].google_id == "g-1"

    claims = jwt.decode(data["token"], secret, algorithms=["HS256"])
    assert claims["user_id"] == user["id"]
    assert claims["email"] == "a@x.com"
    assert claims["iat"] >= before
    assert claims["exp"] - claims["iat"] == 24 * 3600

    paths = [request.url.path for request in google.requests]
    assert paths == ["/token", "/oauth2/v2/userinfo"]


def test_second_login_same_user(client):
    first = client.get("/auth/callback", params={"state": _login(client), "code": "abc"})
    second = client.get("/auth/callback", params={"state": _login(client), "code": "def"})
    assert first.json()["user"]["id"] == second.json()["user"]["id"]
    assert len(_users(client)) == 1


def test_callback_clears_state_cookie(client):
    state = _login(client)
    response = client.get("/auth/callback", params={"state": state, "code": "abc"})
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "max-age=0" in set_cookie.lower()


def test_callback_state_mismatch(client, google):
    _login(client)
    response = client.get("/auth/callback", params={"state": "forged", "code": "abc"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"detail": "Invalid state parameter"}
    assert google.requests == []
    assert _users(client) == []
    assert "token" not in response.json()


def test_callback_without_cookie(client, google):
    response = client.get("/auth/callback", params={"state": "whatever", "code": "abc"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert google.requests == []


def test_callback_without_state(client, google):
    _login(client)
    response = client.get("/auth/callback", params={"code": "abc"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert google.requests == []


def test_callback_missing_code(client, google):
    state = _login(client)
    response = client.get("/auth/callback", params={"state": state})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"detail": "Authorization code not provided"}
    assert google.requests == []


def test_callback_exchange_failure(client, google):
    google.token_status = 400
    response = client.get("/auth/callback", params={"state": _login(client), "code": "abc"})
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"detail": "Failed to exchange authorization code"}
    assert "invalid_grant" not in response.text
    assert _users(client) == []


def test_callback_profile_without_email(client, google):
    google.profile = {"id": "g-1", "name": "Ann"}
    response = client.get("/auth/callback", params={"state": _login(client), "code": "abc"})
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"detail": "Failed to get user info"}
    assert _users(client) == []


def test_callback_persistence_failure(client):
    state = _login(client)
    with mock.patch.object(UserDirectory, "find_or_create",
                           side_effect=UserPersistenceFailure("database is gone")):
        response = client.get("/auth/callback", params={"state": state, "code": "abc"})
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Failed to create or find user"}
    assert "database is gone" not in response.text


def test_me(client):
    token = client.get("/auth/callback",
                       params={"state": _login(client), "code": "abc"}).json()["token"]
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == "a@x.com"


@pytest.mark.parametrize("header", [
    None, "", "Bearer", "Bearer not-a-token", "Basic dXNlcjpwYXNz", "Bearer a b",
])
def test_me_invalid(client, header):
    headers = {"Authorization": header} if header is not None else {}
    response = client.get("/auth/me", headers=headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "invalid_token"}
    assert response.headers["WWW-Authenticate"] == 'Bearer error="invalid_token"'


def test_me_expired(client, secret):
    past = datetime.now(tz=timezone.utc) - timedelta(days=3)
    issuer = SignedCredentialService(secret, timedelta(hours=24), clock=lambda: past)
    token = issuer.issue(1, "a@x.com")
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "token_expired"}


def test_production_refuses_default_secret(settings):
    production = settings.model_copy(update={"env": "production",
                                             "jwt_secret": SecretStr("")})
    with pytest.raises(ValueError):
        create_app(production)
