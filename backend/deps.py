"""
Shared FastAPI dependencies.

Routers import the DB session, caller identity guards and pagination from here.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from domain.enums import UserRole
from domain.errors import AuthorizationError
from middleware.auth import require_token_claims
from services import user_service


class Pagination(TypedDict):
    limit: int
    offset: int


class PageParams(TypedDict):
    page: int
    limit: int


class Actor(TypedDict):
    user_id: str
    role: str


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def page_params(
    page: int = Query(1, ge=1, le=10_000),
    limit: int = Query(20, ge=1, le=200),
) -> PageParams:
    return {"page": page, "limit": limit}


def is_admin(actor: Actor) -> bool:
    return actor["role"] == UserRole.ADMIN.value


async def require_user(
    claims: dict = Depends(require_token_claims),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """
    Require an authenticated caller.

    Ensures a User row exists for the token subject (create-on-demand),
    keeping role and profile claims in sync.
    """
    user = await user_service.ensure_user(
        db,
        user_id=claims["sub"],
        role=claims["role"],
        email=claims.get("email"),
        name=claims.get("name"),
    )
    return {"user_id": user.id, "role": claims["role"]}


async def require_admin(actor: Actor = Depends(require_user)) -> Actor:
    """Require an authenticated admin."""
    if not is_admin(actor):
        raise AuthorizationError("Admin role required for this endpoint.")
    return actor
