"""
Order endpoints — checkout, order lookup, admin status changes.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import User
from deps import Actor, require_admin, require_user
from domain.responses import success_response
from middleware.rate_limit import rate_limit
from models import OrderCreateRequest, StatusUpdateRequest
from services import notification_service, order_service, order_status, user_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["orders"])


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(settings.order_rate_limit_requests, settings.order_rate_limit_window_seconds)),
):
    """Place an order from the submitted items (or the server cart when items is omitted)."""
    order = await order_service.create_order(
        db,
        user_id=actor["user_id"],
        items=[i.as_line() for i in request.items] if request.items is not None else None,
        shipping_address=request.shipping_address.model_dump() if request.shipping_address else None,
        notes=request.notes,
        payment_method=request.payment_method,
        promo_code=request.promo_code,
    )
    await db.commit()

    data = order_service.serialize_order(order)
    owner = await db.get(User, actor["user_id"])
    await notification_service.notify_order_created(data, recipient=owner.email if owner else None)

    return success_response(data={"order": data})


@router.get("/orders/{order_id}")
async def get_order(
    order_id: int,
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_order(
        db, order_id=order_id, user_id=actor["user_id"], role=actor["role"]
    )
    owners = await user_service.owner_summaries(db, {order.user_id})
    return success_response(
        data={"order": order_service.serialize_order(order, owner=owners.get(order.user_id))}
    )


@router.put("/orders/{order_id}/status")
async def update_order_status(
    order_id: int,
    request: StatusUpdateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await order_status.update_order_status(
        db,
        order_id=order_id,
        actor_role=actor["role"],
        status=request.status,
        payment_status=request.payment_status,
    )
    await db.commit()
    return success_response(data={"order": order_service.serialize_order(order)})
