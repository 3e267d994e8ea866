"""
Pytest configuration and shared fixtures for the Orders API tests.

Provides an in-memory SQLite session, an httpx AsyncClient bound to the app,
and access-token helpers for customers and admins.
"""
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
from main import app
from middleware.auth import issue_access_token
from middleware.rate_limit import limiter
from services.pricing import PromoCatalog

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"
settings.notification_webhook_url = ""


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    HTTP client talking to the app in-process, with the test DB session.

    Overrides the get_db dependency; lifespan (init_db on the real file DB)
    is not run.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


# ── Auth Fixtures ────────────────────────────────────────────────────


def bearer(user_id: str, role: str = "user", **claims) -> dict:
    token = issue_access_token(user_id=user_id, role=role, **claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict:
    return bearer("user-alice", email="alice@example.com", name="Alice")


@pytest.fixture
def other_user_headers() -> dict:
    return bearer("user-bob", email="bob@example.com", name="Bob")


@pytest.fixture
def admin_headers() -> dict:
    return bearer("admin-carol", role="admin", email="carol@example.com", name="Carol")


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
def catalog() -> PromoCatalog:
    return PromoCatalog.from_setting("BINARY10:PERCENT:10,FLAT50:AMOUNT:50")


@pytest.fixture
def basic_items() -> list[dict]:
    """p1 ×2 @100 + p2 ×1 @50 → subtotal 250."""
    return [
        {"item_id": "p1", "item_type": "product", "title": "Logo Pack", "price": 100, "quantity": 2},
        {"item_id": "p2", "item_type": "product", "title": "Icon Set", "price": 50, "quantity": 1},
    ]


@pytest.fixture
def basic_payload_items() -> list[dict]:
    """Same cart as basic_items, in the API's camelCase shape."""
    return [
        {"itemId": "p1", "itemType": "product", "title": "Logo Pack", "price": 100, "quantity": 2},
        {"itemId": "p2", "itemType": "product", "title": "Icon Set", "price": 50, "quantity": 1},
    ]


@pytest.fixture
async def sample_user(db_session: AsyncSession):
    from services import user_service

    user = await user_service.ensure_user(
        db_session, user_id="user-alice", role="user", email="alice@example.com", name="Alice"
    )
    await db_session.commit()
    return user
