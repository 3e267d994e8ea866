"""
Order status controller — admin-only changes to status and payment_status.

The two fields move independently. Which moves are legal is decided by a
TransitionTable picked with the ORDER_STATUS_POLICY setting:

  unconstrained (default)  any value → any value; lets staff correct mistakes
  strict                   pending → processing | cancelled
                           processing → completed | cancelled
                           unpaid → paid,  paid → refunded

Setting a field to its current value is always allowed. Concurrent updates
are last-write-wins.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, utcnow
from domain.enums import OrderStatus, PaymentStatus, UserRole
from domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from services import order_service

logger = logging.getLogger(__name__)

_STATUSES = {s.value for s in OrderStatus}
_PAYMENT_STATUSES = {s.value for s in PaymentStatus}


@dataclass(frozen=True)
class TransitionTable:
    """
    from → allowed targets. A table with edges=None allows everything.
    """
    name: str
    edges: dict[str, frozenset[str]] | None = field(default=None)

    def allowed(self, current: str, target: str) -> bool:
        if current == target or self.edges is None:
            return True
        return target in self.edges.get(current, frozenset())


UNCONSTRAINED = {
    "status": TransitionTable("unconstrained"),
    "payment_status": TransitionTable("unconstrained"),
}

STRICT = {
    "status": TransitionTable(
        "strict",
        {
            OrderStatus.PENDING.value: frozenset({OrderStatus.PROCESSING.value, OrderStatus.CANCELLED.value}),
            OrderStatus.PROCESSING.value: frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value}),
        },
    ),
    "payment_status": TransitionTable(
        "strict",
        {
            PaymentStatus.UNPAID.value: frozenset({PaymentStatus.PAID.value}),
            PaymentStatus.PAID.value: frozenset({PaymentStatus.REFUNDED.value}),
        },
    ),
}

POLICIES = {"unconstrained": UNCONSTRAINED, "strict": STRICT}


def tables_for(policy: str | None = None) -> dict[str, TransitionTable]:
    name = (policy or settings.order_status_policy).strip().lower()
    if name not in POLICIES:
        raise ValueError(f"Unknown order status policy: {name}")
    return POLICIES[name]


def _check_value(value: str | None, allowed: set[str], field_name: str) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if normalized not in allowed:
        raise ValidationError(
            f"'{value}' is not one of {sorted(allowed)}",
            field=field_name,
        )
    return normalized


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: int,
    actor_role: str,
    status: str | None = None,
    payment_status: str | None = None,
    policy: str | None = None,
) -> Order:
    if actor_role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin role required to change order status.")

    status = _check_value(status, _STATUSES, "status")
    payment_status = _check_value(payment_status, _PAYMENT_STATUSES, "paymentStatus")
    if status is None and payment_status is None:
        raise ValidationError("Provide status and/or paymentStatus")

    order = await order_service.fetch_order(db, order_id=order_id)
    if not order:
        raise NotFoundError("Order", str(order_id))

    tables = tables_for(policy)
    if status is not None and not tables["status"].allowed(order.status, status):
        raise ConflictError(
            f"Order {order_id} cannot move from status '{order.status}' to '{status}'",
            details={"field": "status", "from": order.status, "to": status},
        )
    if payment_status is not None and not tables["payment_status"].allowed(order.payment_status, payment_status):
        raise ConflictError(
            f"Order {order_id} cannot move from payment status '{order.payment_status}' to '{payment_status}'",
            details={"field": "paymentStatus", "from": order.payment_status, "to": payment_status},
        )

    changes = []
    if status is not None and status != order.status:
        changes.append(f"status {order.status}→{status}")
        order.status = status
    if payment_status is not None and payment_status != order.payment_status:
        changes.append(f"payment {order.payment_status}→{payment_status}")
        order.payment_status = payment_status

    if changes:
        order.updated_at = utcnow()
        await db.flush()
        logger.info(f"Order {order_id}: {', '.join(changes)}")
    return order
