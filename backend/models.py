"""
Pydantic models for request validation.

Request models are deliberately lenient about business rules (quantity ≥ 1,
non-negative prices, known item types): those checks belong to the services,
which raise ValidationError the same way whether the items came from the
request body or the server cart. Unknown fields are ignored, so a
client-sent totalAmount never reaches the order writer.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ApiBase(BaseModel):
    """Shared base — accepts camelCase aliases or Python names, drops extras."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Line items ──────────────────────────────────────────────────────

class LineItemIn(ApiBase):
    """One product/service line as submitted by a client."""
    item_id: str = Field(..., alias="itemId", description="Product or service id")
    item_type: str = Field(..., alias="itemType", description="'product' or 'service'")
    title: str = ""
    price: Decimal = Field(..., description="Unit price snapshot taken when added to cart")
    quantity: int = 1
    image: Optional[str] = ""

    def as_line(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_type": self.item_type,
            "title": self.title,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image or "",
        }


# ── Orders ──────────────────────────────────────────────────────────

class ShippingAddressIn(ApiBase):
    street: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip: Optional[str] = Field(
        default=None,
        max_length=20,
        validation_alias=AliasChoices("zip", "zipCode"),
    )
    country: Optional[str] = Field(default=None, max_length=100)


class OrderCreateRequest(ApiBase):
    """
    Checkout request.

    items omitted (null) → the caller's server-side cart is used.
    """
    items: Optional[List[LineItemIn]] = None
    shipping_address: Optional[ShippingAddressIn] = Field(default=None, alias="shippingAddress")
    notes: str = Field(default="", max_length=2000)
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod", max_length=30)
    promo_code: Optional[str] = Field(default=None, alias="promoCode", max_length=50)


class StatusUpdateRequest(ApiBase):
    status: Optional[str] = None
    payment_status: Optional[str] = Field(default=None, alias="paymentStatus")


# ── Cart ────────────────────────────────────────────────────────────

class CartItemAddRequest(ApiBase):
    item_id: str = Field(..., alias="itemId", min_length=1, max_length=64)
    item_type: str = Field(..., alias="itemType")
    title: str = Field(..., min_length=1, max_length=300)
    price: Decimal
    image: Optional[str] = ""


class QuantityChangeRequest(ApiBase):
    delta: int


# ── Pricing ─────────────────────────────────────────────────────────

class QuoteRequest(ApiBase):
    items: List[LineItemIn] = Field(default_factory=list)
    promo_code: Optional[str] = Field(default=None, alias="promoCode")
