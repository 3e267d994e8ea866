"""
Database engine and session management for the Binary Craft orders API.

Uses SQLAlchemy async engine with aiosqlite for non-blocking DB operations
inside FastAPI. Tables are auto-created on server startup via init_db().

One request = one session = one transaction: routes flush through the
services and commit once at the end, so an order and the cart clear that
goes with it land together or not at all.
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# ── Engine ──────────────────────────────────────────────────────────

def async_database_url(raw_url: str) -> str:
    """sqlite:///... → sqlite+aiosqlite:///...; other URLs pass through."""
    if raw_url.startswith("sqlite:///"):
        return raw_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return raw_url


_async_url = async_database_url(settings.database_url)
_is_sqlite = _async_url.startswith("sqlite")

engine = create_async_engine(
    _async_url,
    echo=False,
    # wait on a locked SQLite file instead of failing the request immediately
    connect_args={"timeout": 15} if _is_sqlite else {},
)

if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db() -> None:
    """Create all tables. Called once on server startup."""
    # Import models so Base.metadata knows about them
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database tables ready ({engine.url.get_backend_name()})")


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields an async session, rolled back on error."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
