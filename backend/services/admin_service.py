"""
Admin reporting — order listings, dashboard numbers, monthly analytics and
best sellers.

Read-only. Every query here goes through read_retry.
"""
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, OrderItem, User, utcnow
from domain.constants import ANALYTICS_MONTHS, RECENT_ORDERS_LIMIT, TOP_ITEMS_LIMIT, ZERO
from domain.enums import ItemKind, PaymentStatus, UserRole
from services.pricing import to_money
from utils.retry import read_retry


@read_retry
async def list_orders(
    db: AsyncSession,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Order], int]:
    filters = []
    if status:
        filters.append(Order.status == status)
    if payment_status:
        filters.append(Order.payment_status == payment_status)

    total = (await db.execute(select(func.count(Order.id)).where(*filters))).scalar_one()
    res = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return list(res.scalars().all()), total


@read_retry
async def dashboard(db: AsyncSession) -> dict:
    orders_count = (await db.execute(select(func.count(Order.id)))).scalar_one()

    revenue = (
        await db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.payment_status == PaymentStatus.PAID.value)
        )
    ).scalar_one()

    status_rows = await db.execute(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    )
    status_counts = {status: count for status, count in status_rows.all()}

    recent = await db.execute(
        select(Order)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS_LIMIT)
    )

    return {
        "ordersCount": orders_count,
        "revenue": to_money(revenue or ZERO),
        "statusCounts": status_counts,
        "recentOrders": list(recent.scalars().all()),
    }


@read_retry
async def top_items(db: AsyncSession, *, limit: int = TOP_ITEMS_LIMIT) -> list[dict]:
    """Best-selling products by units sold across all orders."""
    total_sold = func.sum(OrderItem.quantity).label("total_sold")
    res = await db.execute(
        select(
            OrderItem.item_id,
            func.min(OrderItem.title).label("title"),
            total_sold,
            func.sum(OrderItem.price * OrderItem.quantity).label("revenue"),
        )
        .where(OrderItem.item_type == ItemKind.PRODUCT.value)
        .group_by(OrderItem.item_id)
        .order_by(total_sold.desc(), OrderItem.item_id)
        .limit(limit)
    )
    return [
        {
            "itemId": row.item_id,
            "title": row.title,
            "totalSold": int(row.total_sold or 0),
            "revenue": to_money(row.revenue or 0),
        }
        for row in res.all()
    ]


def _month_starts(now: datetime, months: int) -> list[datetime]:
    """First instant of each of the last `months` calendar months, oldest first."""
    starts = []
    for back in range(months - 1, -1, -1):
        year, month0 = divmod(now.year * 12 + now.month - 1 - back, 12)
        starts.append(datetime(year, month0 + 1, 1))
    return starts


@read_retry
async def monthly_analytics(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    months: int = ANALYTICS_MONTHS,
) -> list[dict]:
    """
    Per-month buckets for the last `months` months, current month last.

    orders  — orders created that month (any status)
    revenue — total of those orders with payment_status=paid
    users   — customers (role=user) registered that month
    """
    starts = _month_starts(now or utcnow(), months)
    buckets = {
        (s.year, s.month): {"label": s.strftime("%b %y"), "orders": 0, "revenue": ZERO, "users": 0}
        for s in starts
    }

    order_rows = await db.execute(
        select(Order.created_at, Order.total_amount, Order.payment_status)
        .where(Order.created_at >= starts[0])
    )
    for created_at, total_amount, payment_status in order_rows.all():
        bucket = buckets.get((created_at.year, created_at.month))
        if bucket is None:
            continue
        bucket["orders"] += 1
        if payment_status == PaymentStatus.PAID.value:
            bucket["revenue"] += to_money(total_amount or 0)

    user_rows = await db.execute(
        select(User.created_at)
        .where(User.role == UserRole.USER.value, User.created_at >= starts[0])
    )
    for (created_at,) in user_rows.all():
        bucket = buckets.get((created_at.year, created_at.month))
        if bucket is not None:
            bucket["users"] += 1

    return [
        {**b, "revenue": to_money(b["revenue"])}
        for b in buckets.values()
    ]
