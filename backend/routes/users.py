"""
Caller-scoped endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Actor, Pagination, pagination_params, require_user
from domain.responses import offset_meta, success_response
from services import order_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/orders")
async def my_orders(
    actor: Actor = Depends(require_user),
    pagination: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """The caller's order history, newest first."""
    orders, total = await order_service.list_user_orders(
        db,
        user_id=actor["user_id"],
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return success_response(
        data={"orders": [order_service.serialize_order(o) for o in orders]},
        meta=offset_meta(limit=pagination["limit"], offset=pagination["offset"], total=total),
    )
