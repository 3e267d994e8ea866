"""
Access-token authentication helpers.

Tokens are short-lived HS256 JWTs carrying the caller's identity:
  - sub:   user id (becomes the order owner id)
  - role:  "user" | "admin"
  - email, name: optional profile claims, copied into the users table

Issuing tokens belongs to the external auth provider; issue_access_token()
exists for local tooling (scripts/issue_token.py) and tests.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import Header, HTTPException
from typing import Optional

import jwt

from config import settings
from domain.enums import UserRole
from domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _require_secret() -> str:
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; rejecting authenticated request")
        raise HTTPException(status_code=500, detail="Server auth misconfigured (JWT secret missing).")
    return settings.jwt_secret


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired. Please log in again.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token. Please log in again.")

    role = payload.get("role", UserRole.USER.value)
    if role not in (UserRole.USER.value, UserRole.ADMIN.value):
        raise UnauthorizedError(f"Unknown role in access token: {role}")
    payload["role"] = role
    return payload


def issue_access_token(
    *,
    user_id: str,
    role: str = UserRole.USER.value,
    email: str | None = None,
    name: str | None = None,
    ttl_minutes: int | None = None,
) -> str:
    now = _now_utc()
    ttl = settings.jwt_access_ttl_minutes if ttl_minutes is None else ttl_minutes
    exp = now.replace(microsecond=0) + timedelta(minutes=ttl)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, _require_secret(), algorithm="HS256")


async def require_token_claims(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """Dependency: verified claims of the bearer token, or 401."""
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError(
            "Authentication required. Provide Authorization: Bearer <token>."
        )
    return decode_access_token(token)
