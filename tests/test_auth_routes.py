"""
tests/test_auth_routes.py -- Integration tests for the /auth endpoints.

These tests exercise the full stack: FastAPI routing -> guards -> AuthService
-> UserStore -> exception handlers -> response envelope.

Coverage:
  - signup 201 with an {accessToken, refreshToken} pair, 400 duplicate_account
  - signin 200, 400 bad_credentials for unknown user and wrong password alike,
    including credentials that would fail the signup policy
  - expired access and refresh tokens are 401 at the guards
  - signout 204 always, 401 without an access token, 401 with a refresh token
  - refresh 200 rotation, 403 token_mismatch on replay, 403 no_active_session
    after signout, 401 with an access token
  - validation errors never echo the submitted password
  - the "alice" scenario end to end over HTTP
"""

from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient

from auth.models import TokenKind, User
from auth.tokens import issue_token

ALICE = {"username": "alice", "password": "Secret123!"}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _signup(client: TestClient, creds: dict = ALICE) -> dict:
    resp = client.post("/auth/signup", json=creds)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestSignupRoute:
    def test_signup_returns_token_pair(self, api_client: TestClient) -> None:
        resp = api_client.post("/auth/signup", json=ALICE)
        assert resp.status_code == 201
        data = resp.json()
        assert sorted(data) == ["accessToken", "refreshToken"]
        assert data["accessToken"]
        assert data["refreshToken"]
        assert resp.headers["cache-control"] == "no-store"

    def test_duplicate_signup(self, api_client: TestClient) -> None:
        _signup(api_client)
        resp = api_client.post("/auth/signup", json={"username": "alice", "password": "different99"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "duplicate_account"

    def test_validation_error_does_not_echo_password(self, api_client: TestClient) -> None:
        resp = api_client.post("/auth/signup", json={"username": "al", "password": "short"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert "short" not in resp.text


class TestSigninRoute:
    def test_signin(self, api_client: TestClient) -> None:
        _signup(api_client)
        resp = api_client.post("/auth/signin", json=ALICE)
        assert resp.status_code == 200
        assert resp.json()["refreshToken"]

    def test_unknown_user_and_wrong_password_share_response(self, api_client: TestClient) -> None:
        _signup(api_client)
        unknown = api_client.post("/auth/signin", json={"username": "nobody", "password": "Secret123!"})
        wrong = api_client.post("/auth/signin", json={"username": "alice", "password": "wrong-password"})
        assert unknown.status_code == wrong.status_code == 400
        assert unknown.json() == wrong.json()
        assert unknown.json()["error"]["code"] == "bad_credentials"

    def test_signin_outside_signup_policy_is_bad_credentials(self, api_client: TestClient) -> None:
        _signup(api_client)
        short_password = api_client.post("/auth/signin", json={"username": "alice", "password": "short"})
        short_username = api_client.post("/auth/signin", json={"username": "ab", "password": "Secret123!"})
        for resp in (short_password, short_username):
            assert resp.status_code == 400, f"Expected 400, got {resp.status_code}: {resp.text}"
            assert resp.json()["error"]["code"] == "bad_credentials"

    def test_signin_empty_password_is_validation_error(self, api_client: TestClient) -> None:
        resp = api_client.post("/auth/signin", json={"username": "alice", "password": ""})
        assert resp.status_code == 422


class TestSignoutRoute:
    def test_signout_requires_access_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/auth/signout")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_signout_rejects_refresh_token(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        resp = api_client.get("/auth/signout", headers=_bearer(tokens["refreshToken"]))
        assert resp.status_code == 401

    def test_signout_is_idempotent(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        for _ in range(2):
            resp = api_client.get("/auth/signout", headers=_bearer(tokens["accessToken"]))
            assert resp.status_code == 204
            assert resp.content == b""


class TestRefreshRoute:
    def test_refresh_rotates(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        resp = api_client.get("/auth/refresh", headers=_bearer(tokens["refreshToken"]))
        assert resp.status_code == 200
        assert resp.json()["refreshToken"] != tokens["refreshToken"]
        assert resp.headers["cache-control"] == "no-store"

    def test_refresh_rejects_access_token(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        resp = api_client.get("/auth/refresh", headers=_bearer(tokens["accessToken"]))
        assert resp.status_code == 401

    def test_refresh_rejects_garbage(self, api_client: TestClient) -> None:
        resp = api_client.get("/auth/refresh", headers=_bearer("not-a-token"))
        assert resp.status_code == 401

    def test_refresh_rejects_non_bearer_scheme(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        resp = api_client.get("/auth/refresh", headers={"Authorization": f"Basic {tokens['refreshToken']}"})
        assert resp.status_code == 401


class TestExpiredTokens:
    """Guards reject tokens whose exp has passed, for both kinds."""

    def test_expired_access_token(self, api_client: TestClient) -> None:
        _signup(api_client)
        user = User(id=1, username="alice", hashed_password="unused")
        expired = issue_token(user, TokenKind.ACCESS, ttl=timedelta(seconds=-1))
        resp = api_client.get("/auth/signout", headers=_bearer(expired))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_expired_refresh_token(self, api_client: TestClient) -> None:
        _signup(api_client)
        user = User(id=1, username="alice", hashed_password="unused")
        expired = issue_token(user, TokenKind.REFRESH, ttl=timedelta(seconds=-1))
        resp = api_client.get("/auth/refresh", headers=_bearer(expired))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"


class TestMeRoute:
    def test_me(self, api_client: TestClient) -> None:
        tokens = _signup(api_client)
        resp = api_client.get("/auth/me", headers=_bearer(tokens["accessToken"]))
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"
        assert isinstance(resp.json()["user_id"], int)


def test_alice_scenario_over_http(api_client: TestClient) -> None:
    first = _signup(api_client)

    second = api_client.get("/auth/refresh", headers=_bearer(first["refreshToken"]))
    assert second.status_code == 200
    second = second.json()

    replay = api_client.get("/auth/refresh", headers=_bearer(first["refreshToken"]))
    assert replay.status_code == 403
    assert replay.json()["error"]["code"] == "token_mismatch"

    signout = api_client.get("/auth/signout", headers=_bearer(second["accessToken"]))
    assert signout.status_code == 204

    after = api_client.get("/auth/refresh", headers=_bearer(second["refreshToken"]))
    assert after.status_code == 403
    assert after.json()["error"]["code"] == "no_active_session"
