"""
Cart service — the optional server-side cart, one per user.

Same rules as the client cart store: duplicate adds increment, quantities
below 1 drop the line, unknown items are ignored. Prices are the snapshot
taken when the item was added and are never refreshed from the catalog.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Cart, CartItem, utcnow
from domain.constants import MAX_QUANTITY
from domain.enums import ItemKind
from domain.errors import ValidationError
from services.pricing import PricedLine, PromoCatalog, compute_totals, default_catalog, to_money
from utils.retry import read_retry

logger = logging.getLogger(__name__)


@read_retry
async def get_cart(db: AsyncSession, *, user_id: str) -> Cart | None:
    res = await db.execute(select(Cart).where(Cart.user_id == user_id))
    return res.scalar_one_or_none()


async def get_or_create_cart(db: AsyncSession, *, user_id: str) -> Cart:
    cart = await get_cart(db, user_id=user_id)
    if cart:
        return cart
    cart = Cart(user_id=user_id, items=[])
    db.add(cart)
    await db.flush()
    return cart


def _find(cart: Cart, item_id: str) -> CartItem | None:
    for item in cart.items:
        if item.item_id == item_id:
            return item
    return None


async def add_item(
    db: AsyncSession,
    *,
    user_id: str,
    item_id: str,
    item_type: str,
    title: str,
    price,
    image: str = "",
) -> Cart:
    if item_type not in (ItemKind.PRODUCT.value, ItemKind.SERVICE.value):
        raise ValidationError(f"Unknown item type '{item_type}'", field="itemType")
    try:
        unit_price = to_money(price)
    except ValueError as e:
        raise ValidationError(str(e), field="price")
    if unit_price < 0:
        raise ValidationError("Price must not be negative", field="price")

    cart = await get_or_create_cart(db, user_id=user_id)
    existing = _find(cart, item_id)
    if existing:
        if existing.quantity >= MAX_QUANTITY:
            raise ValidationError(f"quantity must be at most {MAX_QUANTITY}", field="itemId")
        existing.quantity += 1
    else:
        next_pos = max((i.position for i in cart.items), default=-1) + 1
        cart.items.append(
            CartItem(
                item_id=item_id,
                item_type=item_type,
                title=title,
                price=unit_price,
                quantity=1,
                image=image or "",
                position=next_pos,
            )
        )
    cart.updated_at = utcnow()
    await db.flush()
    return cart


async def change_quantity(db: AsyncSession, *, user_id: str, item_id: str, delta: int) -> Cart:
    cart = await get_or_create_cart(db, user_id=user_id)
    item = _find(cart, item_id)
    if item is None:
        return cart

    if item.quantity + delta > MAX_QUANTITY:
        raise ValidationError(f"quantity must be at most {MAX_QUANTITY}", field="delta")

    item.quantity += delta
    if item.quantity < 1:
        cart.items.remove(item)
    cart.updated_at = utcnow()
    await db.flush()
    return cart


async def remove_item(db: AsyncSession, *, user_id: str, item_id: str) -> Cart:
    cart = await get_or_create_cart(db, user_id=user_id)
    item = _find(cart, item_id)
    if item is not None:
        cart.items.remove(item)
        cart.updated_at = utcnow()
        await db.flush()
    return cart


async def clear_cart(db: AsyncSession, *, user_id: str) -> None:
    """Empty the user's cart if one exists. Never creates a cart."""
    cart = await get_cart(db, user_id=user_id)
    if not cart or not cart.items:
        return
    cart.items.clear()
    cart.updated_at = utcnow()
    await db.flush()
    logger.info(f"Cleared server cart for user {user_id}")


def cart_lines(cart: Cart | None) -> list[dict]:
    """Cart rows as order-item dicts (the shape the Order Writer accepts)."""
    if not cart:
        return []
    return [
        {
            "item_id": i.item_id,
            "item_type": i.item_type,
            "title": i.title,
            "price": i.price,
            "quantity": i.quantity,
            "image": i.image,
        }
        for i in cart.items
    ]


def summarize_cart(cart: Cart | None, *, promo_code: str | None = None, catalog: PromoCatalog | None = None) -> dict:
    items = cart.items if cart else []
    breakdown = compute_totals(
        [PricedLine(unit_price=i.price, quantity=i.quantity) for i in items],
        promo_code,
        catalog or default_catalog(),
    )
    return {
        "items": [
            {
                "itemId": i.item_id,
                "itemType": i.item_type,
                "title": i.title,
                "price": to_money(i.price),
                "quantity": i.quantity,
                "image": i.image,
                "lineTotal": to_money(to_money(i.price) * i.quantity),
            }
            for i in items
        ],
        "itemCount": sum(i.quantity for i in items),
        **breakdown.as_dict(),
        "currency": settings.currency,
    }
