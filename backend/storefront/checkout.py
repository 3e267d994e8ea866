"""
Checkout — submit the client cart as an order.

The cart is cleared only after the API confirms the order. Any failure
(validation, auth, network) leaves the cart exactly as it was so the
shopper can retry or fix it.
"""
import logging

from storefront.api_client import StorefrontClient
from storefront.cart_store import CartStore, LineItem
from storefront.errors import ValidationError

logger = logging.getLogger(__name__)


def to_order_item(line: LineItem) -> dict:
    return {
        "itemId": line.reference_id,
        "itemType": line.kind,
        "title": line.title,
        "price": str(line.unit_price),
        "quantity": line.quantity,
        "image": line.image,
    }


class Checkout:
    def __init__(self, store: CartStore, client: StorefrontClient):
        self.store = store
        self.client = client

    def place_order(
        self,
        *,
        shipping_address: dict | None = None,
        notes: str = "",
        payment_method: str | None = None,
        promo_code: str | None = None,
    ) -> dict:
        if self.store.is_empty():
            raise ValidationError("Cart is empty")

        order = self.client.create_order(
            [to_order_item(line) for line in self.store.items],
            shipping_address=shipping_address,
            notes=notes,
            payment_method=payment_method,
            promo_code=promo_code,
        )
        self.store.clear()
        logger.info(f"Order {order.get('id')} placed; cart cleared")
        return order
