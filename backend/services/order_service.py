"""
Order service — turns a cart snapshot into an immutable order.

Lifecycle:
  - create_order():     validate → price server-side → persist pending/unpaid
                        → clear the owner's server cart (same transaction)
  - get_order():        owner or admin only
  - list_user_orders(): caller's history, newest first

Items and amounts are frozen at creation. Status changes live in
services/order_status.py; nothing in this module rewrites an order.

There is no idempotency key: a resubmitted checkout creates a second order.
"""
import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, OrderItem
from domain.constants import MAX_QUANTITY
from domain.enums import ItemKind, OrderStatus, PaymentStatus, UserRole
from domain.errors import AuthorizationError, NotFoundError, ValidationError
from services import cart_service
from services.pricing import PricedLine, PromoCatalog, compute_totals, default_catalog, to_money
from utils.retry import read_retry

logger = logging.getLogger(__name__)

_ITEM_KINDS = {k.value for k in ItemKind}


def validate_items(items: list[dict] | None) -> list[dict]:
    """
    Check and normalise submitted line items.

    Each item: {item_id, item_type, title, price, quantity, image?}.
    Raises ValidationError on the first bad line; returns clean copies with
    price as a 2-place Decimal.
    """
    if not items:
        raise ValidationError("Cart is empty", field="items")

    clean: list[dict] = []
    for idx, raw in enumerate(items):
        where = f"items[{idx}]"

        item_id = str(raw.get("item_id") or "").strip()
        if not item_id:
            raise ValidationError("itemId is required", field=where)

        item_type = str(raw.get("item_type") or "").strip().lower()
        if item_type not in _ITEM_KINDS:
            raise ValidationError(f"Unknown item type '{raw.get('item_type')}'", field=where)

        title = str(raw.get("title") or "").strip()
        if not title:
            raise ValidationError("title is required", field=where)

        try:
            price = to_money(raw.get("price"))
        except ValueError as e:
            raise ValidationError(str(e), field=where)
        if price < 0:
            raise ValidationError("price must not be negative", field=where)

        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("quantity must be an integer", field=where)
        if quantity < 1:
            raise ValidationError("quantity must be at least 1", field=where)
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"quantity must be at most {MAX_QUANTITY}", field=where)

        clean.append({
            "item_id": item_id,
            "item_type": item_type,
            "title": title,
            "price": price,
            "quantity": quantity,
            "image": raw.get("image") or "",
        })
    return clean


async def create_order(
    db: AsyncSession,
    *,
    user_id: str,
    items: list[dict] | None,
    shipping_address: dict | None = None,
    notes: str | None = None,
    payment_method: str | None = None,
    promo_code: str | None = None,
    catalog: PromoCatalog | None = None,
) -> Order:
    """
    Persist a new order for user_id.

    items=None means "check out my server cart"; an explicit [] is rejected.
    Any client-claimed total is not an input here: amounts come from
    compute_totals() over the validated items.
    """
    if items is None:
        cart = await cart_service.get_cart(db, user_id=user_id)
        items = cart_service.cart_lines(cart)

    lines = validate_items(items)
    breakdown = compute_totals(
        [PricedLine(unit_price=i["price"], quantity=i["quantity"]) for i in lines],
        promo_code,
        catalog or default_catalog(),
    )

    address = shipping_address or {}
    order = Order(
        user_id=user_id,
        subtotal_amount=breakdown.subtotal,
        discount_amount=breakdown.discount,
        total_amount=breakdown.total,
        promo_code=breakdown.promo_code,
        status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.UNPAID.value,
        payment_method=(payment_method or settings.default_payment_method).strip().lower(),
        shipping_street=address.get("street"),
        shipping_city=address.get("city"),
        shipping_state=address.get("state"),
        shipping_zip=address.get("zip"),
        shipping_country=address.get("country"),
        notes=notes or "",
        items=[
            OrderItem(
                item_id=i["item_id"],
                item_type=i["item_type"],
                title=i["title"],
                price=i["price"],
                quantity=i["quantity"],
                image=i["image"],
            )
            for i in lines
        ],
    )
    db.add(order)
    await db.flush()

    # Same transaction: if the commit fails the cart survives
    await cart_service.clear_cart(db, user_id=user_id)

    logger.info(
        f"Order {order.id} created for user {user_id}: "
        f"{len(lines)} line(s), total {breakdown.total}"
        + (f" (promo {breakdown.promo_code})" if breakdown.promo_code else "")
    )
    return order


@read_retry
async def fetch_order(db: AsyncSession, *, order_id: int) -> Order | None:
    res = await db.execute(select(Order).where(Order.id == order_id))
    return res.scalar_one_or_none()


async def get_order(db: AsyncSession, *, order_id: int, user_id: str, role: str) -> Order:
    """Return the order if the caller owns it or is an admin."""
    order = await fetch_order(db, order_id=order_id)
    if not order:
        raise NotFoundError("Order", str(order_id))
    if order.user_id != user_id and role != UserRole.ADMIN.value:
        raise AuthorizationError("You do not have access to this order.")
    return order


@read_retry
async def list_user_orders(
    db: AsyncSession,
    *,
    user_id: str,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Order], int]:
    total = (
        await db.execute(select(func.count(Order.id)).where(Order.user_id == user_id))
    ).scalar_one()
    res = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().all()), total


def _money(value) -> Decimal:
    return to_money(value if value is not None else 0)


def serialize_order(order: Order, *, owner: dict | None = None) -> dict:
    data = {
        "id": order.id,
        "ownerId": order.user_id,
        "items": [
            {
                "itemId": i.item_id,
                "itemType": i.item_type,
                "title": i.title,
                "price": _money(i.price),
                "quantity": i.quantity,
                "image": i.image,
            }
            for i in order.items
        ],
        "subtotalAmount": _money(order.subtotal_amount),
        "discountAmount": _money(order.discount_amount),
        "totalAmount": _money(order.total_amount),
        "promoCode": order.promo_code,
        "status": order.status,
        "paymentStatus": order.payment_status,
        "paymentMethod": order.payment_method,
        "shippingAddress": {
            "street": order.shipping_street,
            "city": order.shipping_city,
            "state": order.shipping_state,
            "zip": order.shipping_zip,
            "country": order.shipping_country,
        },
        "notes": order.notes,
        "currency": settings.currency,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
        "updatedAt": order.updated_at.isoformat() if order.updated_at else None,
    }
    if owner is not None:
        data["owner"] = owner
    return data
