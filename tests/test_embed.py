"""Tests for issuing and verifying read-only embed tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt

from progresspath.config import Settings, get_settings
from progresspath.main import app, limiter
from progresspath.modules.embed.service import EmbedTokenService, parse_duration
from tests.conftest import JWT_SECRET, USER_EMAIL, USER_ID


def _sign(claims: dict, secret: str = JWT_SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def _claims(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    claims = {
        "userId": USER_ID,
        "email": USER_EMAIL,
        "permissions": ["read"],
        "type": "embed",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
    }
    claims.update(overrides)
    return claims


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", timedelta(seconds=30)),
            ("15m", timedelta(minutes=15)),
            ("12h", timedelta(hours=12)),
            ("7d", timedelta(days=7)),
            ("3d", timedelta(days=3)),
        ],
    )
    def test_valid_durations(self, value: str, expected: timedelta) -> None:
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "7", "d7", "1w", "7 d", "-1d", "1h\n", "\u0661h", None, 42])
    def test_invalid_durations_fall_back_to_seven_days(self, value) -> None:
        assert parse_duration(value) == timedelta(days=7)


class TestGenerateEmbedToken:
    def test_requires_bearer_token(self, client) -> None:
        response = client.post("/api/auth/generate-embed-token", json={})
        assert response.status_code == 401
        assert response.json()["error"] == "Missing or invalid authorization header"

    def test_rejects_unknown_supabase_token(self, client) -> None:
        response = client.post(
            "/api/auth/generate-embed-token",
            json={},
            headers={"Authorization": "Bearer not-a-real-token"},
        )
        assert response.status_code == 401

    def test_issued_token_verifies_for_same_user(self, client, auth_headers) -> None:
        response = client.post("/api/auth/generate-embed-token", json={"duration": "1h"}, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["type"] == "embed"
        assert body["permissions"] == ["read"]
        assert body["user"] == {"id": USER_ID, "email": USER_EMAIL, "fullName": "Ada"}
        assert body["embedUrl"] == f"https://progress.example.com/embed?token={body['token']}"

        claims = jwt.decode(body["token"], JWT_SECRET, algorithms=["HS256"], options={"verify_sub": False})
        assert claims["exp"] - claims["iat"] == 3600

        verified = client.get("/api/embed/verify", params={"token": body["token"]})
        assert verified.status_code == 200
        assert verified.json()["user"]["userId"] == USER_ID
        assert verified.headers["cache-control"] == "no-store, no-cache, must-revalidate"
        assert verified.headers["pragma"] == "no-cache"

    def test_get_variant_uses_default_duration(self, client, auth_headers) -> None:
        response = client.get("/api/auth/generate-embed-token", headers=auth_headers)
        assert response.status_code == 200
        claims = jwt.decode(response.json()["token"], JWT_SECRET, algorithms=["HS256"], options={"verify_sub": False})
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_invalid_duration_means_seven_days(self, client, auth_headers) -> None:
        response = client.post("/api/auth/generate-embed-token", json={"duration": "forever"}, headers=auth_headers)
        claims = jwt.decode(response.json()["token"], JWT_SECRET, algorithms=["HS256"], options={"verify_sub": False})
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_numeric_duration_means_seven_days(self, client, auth_headers) -> None:
        response = client.post("/api/auth/generate-embed-token", json={"duration": 30}, headers=auth_headers)
        assert response.status_code == 200
        claims = jwt.decode(response.json()["token"], JWT_SECRET, algorithms=["HS256"], options={"verify_sub": False})
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_unknown_profile_is_404(self, client, auth_headers) -> None:
        response = client.post(
            "/api/auth/generate-embed-token",
            json={"userId": "99999999-2222-4333-8444-555555555555"},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"] == "User profile not found in user_profiles table"

    def test_missing_secret_is_configuration_error(self, fake_supabase, auth_headers) -> None:
        service = EmbedTokenService(fake_supabase, secret=None, app_url="https://example.com")
        with pytest.raises(HTTPException) as exc_info:
            service.issue_token({"id": USER_ID, "email": USER_EMAIL})
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail["error"] == "Configuration error"


class TestVerifyEmbedToken:
    def test_missing_query_token(self, client) -> None:
        response = client.get("/api/embed/verify")
        assert response.status_code == 400
        assert response.json()["error"] == "Missing token parameter"

    def test_missing_body_token(self, client) -> None:
        response = client.post("/api/embed/verify", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing token in request body"

    def test_post_body_token(self, client) -> None:
        response = client.post("/api/embed/verify", json={"token": _sign(_claims())})
        assert response.status_code == 200
        assert response.json()["verified"] is True

    def test_expired_token_is_401(self, client) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = _sign(_claims(iat=int(past.timestamp()), exp=int((past + timedelta(minutes=1)).timestamp())))
        response = client.get("/api/embed/verify", params={"token": token})
        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    def test_wrong_signature_is_401(self, client) -> None:
        response = client.get("/api/embed/verify", params={"token": _sign(_claims(), secret="other-secret")})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token signature"

    def test_wrong_type_is_403(self, client) -> None:
        response = client.get("/api/embed/verify", params={"token": _sign(_claims(type="session"))})
        assert response.status_code == 403

    def test_missing_user_id_is_403(self, client) -> None:
        claims = _claims()
        del claims["userId"]
        response = client.get("/api/embed/verify", params={"token": _sign(claims)})
        assert response.status_code == 403

    def test_secrets_are_not_echoed(self, client) -> None:
        response = client.get("/api/embed/verify", params={"token": _sign(_claims())})
        assert JWT_SECRET not in response.text
        assert response.json()["user"]["permissions"] == ["read"]


class TestVerifyWithoutDatabase:
    @pytest.fixture
    def jwt_only_client(self):
        """Only the signing secret is configured; no Supabase override is installed."""
        jwt_only = Settings(
            _env_file=None,
            supabase_url="",
            supabase_key="",
            supabase_service_role_key=None,
            jwt_embed_secret=JWT_SECRET,
            environment="test",
        )
        app.dependency_overrides[get_settings] = lambda: jwt_only
        limiter.enabled = False
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()
        limiter.enabled = True

    def test_query_token_verifies(self, jwt_only_client) -> None:
        response = jwt_only_client.get("/api/embed/verify", params={"token": _sign(_claims())})
        assert response.status_code == 200
        assert response.json()["user"]["userId"] == USER_ID

    def test_body_token_verifies(self, jwt_only_client) -> None:
        response = jwt_only_client.post("/api/embed/verify", json={"token": _sign(_claims())})
        assert response.status_code == 200
        assert response.json()["verified"] is True
