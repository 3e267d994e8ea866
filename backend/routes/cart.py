"""
Server-side cart endpoints — one cart per authenticated user.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Actor, require_user
from domain.responses import success_response
from models import CartItemAddRequest, QuantityChangeRequest
from services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
async def get_cart(
    promo_code: Optional[str] = Query(None, alias="promoCode"),
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await cart_service.get_cart(db, user_id=actor["user_id"])
    return success_response(data=cart_service.summarize_cart(cart, promo_code=promo_code))


@router.post("/items")
async def add_item(
    request: CartItemAddRequest,
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await cart_service.add_item(
        db,
        user_id=actor["user_id"],
        item_id=request.item_id,
        item_type=request.item_type,
        title=request.title,
        price=request.price,
        image=request.image or "",
    )
    await db.commit()
    return success_response(data=cart_service.summarize_cart(cart))


@router.patch("/items/{item_id}")
async def change_quantity(
    item_id: str,
    request: QuantityChangeRequest,
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await cart_service.change_quantity(
        db, user_id=actor["user_id"], item_id=item_id, delta=request.delta
    )
    await db.commit()
    return success_response(data=cart_service.summarize_cart(cart))


@router.delete("/items/{item_id}")
async def remove_item(
    item_id: str,
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await cart_service.remove_item(db, user_id=actor["user_id"], item_id=item_id)
    await db.commit()
    return success_response(data=cart_service.summarize_cart(cart))


@router.delete("")
async def clear_cart(
    actor: Actor = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await cart_service.clear_cart(db, user_id=actor["user_id"])
    await db.commit()
    return success_response(data=cart_service.summarize_cart(None))
