"""
Tests for access-token authentication.

Tests: token decode/verification, require_token_claims, user upsert.
"""
import pytest
import jwt
from fastapi import HTTPException

from config import settings
from domain.errors import UnauthorizedError
from middleware.auth import decode_access_token, issue_access_token, require_token_claims
from services import user_service


class TestDecodeAccessToken:

    @pytest.mark.unit
    def test_round_trip_claims(self):
        token = issue_access_token(user_id="u1", role="admin", email="u1@example.com")
        claims = decode_access_token(token)
        assert claims["sub"] == "u1"
        assert claims["role"] == "admin"
        assert claims["email"] == "u1@example.com"
        assert claims["iss"] == settings.jwt_issuer

    @pytest.mark.unit
    def test_expired_token(self):
        token = issue_access_token(user_id="u1", ttl_minutes=-1)
        with pytest.raises(UnauthorizedError) as exc_info:
            decode_access_token(token)
        assert "expired" in exc_info.value.message.lower()

    @pytest.mark.unit
    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "u1", "iss": settings.jwt_issuer, "iat": 0, "exp": 9_999_999_999},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    @pytest.mark.unit
    def test_wrong_issuer(self):
        token = jwt.encode(
            {"sub": "u1", "iss": "elsewhere", "iat": 0, "exp": 9_999_999_999},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    @pytest.mark.unit
    def test_unknown_role(self):
        token = issue_access_token(user_id="u1", role="superuser")
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    @pytest.mark.unit
    def test_missing_role_defaults_to_user(self):
        token = jwt.encode(
            {"sub": "u1", "iss": settings.jwt_issuer, "iat": 0, "exp": 9_999_999_999},
            settings.jwt_secret,
            algorithm="HS256",
        )
        assert decode_access_token(token)["role"] == "user"

    @pytest.mark.unit
    def test_missing_secret_is_server_error(self, monkeypatch):
        token = issue_access_token(user_id="u1")
        monkeypatch.setattr(settings, "jwt_secret", "")
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 500


class TestRequireTokenClaims:

    @pytest.mark.unit
    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic abc", "Token xyz"])
    async def test_missing_or_malformed_header(self, header):
        with pytest.raises(UnauthorizedError) as exc_info:
            await require_token_claims(authorization=header)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    async def test_valid_header(self):
        token = issue_access_token(user_id="u9")
        claims = await require_token_claims(authorization=f"bearer {token}")
        assert claims["sub"] == "u9"

    @pytest.mark.api
    async def test_garbage_token_via_api(self, client):
        res = await client.get("/users/orders", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401
        assert res.json()["error"]["code"] == "unauthorized"


class TestEnsureUser:

    @pytest.mark.integration
    async def test_creates_then_syncs_profile(self, db_session):
        user = await user_service.ensure_user(db_session, user_id="u1", role="user", email="a@x.io")
        assert (user.role, user.email) == ("user", "a@x.io")

        again = await user_service.ensure_user(db_session, user_id="u1", role="admin", name="Ann")
        assert again is user
        assert (again.role, again.email, again.name) == ("admin", "a@x.io", "Ann")
