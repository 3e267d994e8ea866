"""
User service — keeps the users table in step with verified access tokens.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import User
from utils.retry import read_retry

logger = logging.getLogger(__name__)


async def ensure_user(
    db: AsyncSession,
    *,
    user_id: str,
    role: str,
    email: str | None = None,
    name: str | None = None,
) -> User:
    """Create-on-demand; refresh role/profile when the token says otherwise."""
    user = await db.get(User, user_id)
    if not user:
        user = User(id=user_id, role=role, email=email, name=name)
        db.add(user)
        await db.flush()
        logger.info(f"Registered user {user_id} (role={role})")
        return user

    changed = False
    if user.role != role:
        user.role = role
        changed = True
    if email and user.email != email:
        user.email = email
        changed = True
    if name and user.name != name:
        user.name = name
        changed = True
    if changed:
        await db.flush()
    return user


@read_retry
async def owner_summaries(db: AsyncSession, user_ids: set[str]) -> dict[str, dict]:
    """{user_id: {id, name, email}} for the given ids; unknown ids are left out."""
    if not user_ids:
        return {}
    res = await db.execute(select(User).where(User.id.in_(user_ids)))
    return {
        u.id: {"id": u.id, "name": u.name, "email": u.email}
        for u in res.scalars().all()
    }
