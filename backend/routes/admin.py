"""
Admin reporting endpoints. Every route requires role=admin.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import PageParams, page_params, require_admin
from domain.responses import page_meta, success_response
from services import admin_service, user_service
from services.order_service import serialize_order

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/orders")
async def list_orders(
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await admin_service.list_orders(
        db,
        status=status,
        payment_status=payment_status,
        page=paging["page"],
        limit=paging["limit"],
    )
    owners = await user_service.owner_summaries(db, {o.user_id for o in orders})
    return success_response(
        data={
            "orders": [serialize_order(o, owner=owners.get(o.user_id)) for o in orders],
            "total": total,
        },
        meta=page_meta(page=paging["page"], limit=paging["limit"], total=total),
    )


@router.get("/dashboard")
async def dashboard(db: AsyncSession = Depends(get_db)):
    stats = await admin_service.dashboard(db)
    recent = stats["recentOrders"]
    owners = await user_service.owner_summaries(db, {o.user_id for o in recent})
    stats["recentOrders"] = [serialize_order(o, owner=owners.get(o.user_id)) for o in recent]
    return success_response(data=stats)


@router.get("/analytics")
async def analytics(db: AsyncSession = Depends(get_db)):
    """Orders, paid revenue and new customers per month for the last year."""
    return success_response(data={"monthlyData": await admin_service.monthly_analytics(db)})


@router.get("/orders/top-items")
async def top_items(db: AsyncSession = Depends(get_db)):
    """Top products by units sold."""
    return success_response(data={"items": await admin_service.top_items(db)})
