"""
Pricing engine — subtotal, promo discount and total for a set of line items.

Pure and side-effect free: the same function prices the client cart, the
server cart, stateless quotes and order creation, so every surface agrees.

    subtotal = Σ unit_price × quantity
    discount = rule(subtotal) for a recognised promo code, else 0
    total    = max(0, subtotal − discount)

Amounts are Decimal, quantized to 0.01 (ROUND_HALF_UP). Line items are not
validated here; the Order Writer rejects bad input before pricing.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Protocol

from domain.constants import MONEY_STEP, ZERO
from domain.enums import DiscountType


class Priceable(Protocol):
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    """Minimal priceable line, for rows that name their price differently."""
    unit_price: Decimal
    quantity: int


def to_money(value) -> Decimal:
    """Coerce int/str/float/Decimal to a 2-place Decimal."""
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    try:
        return amount.quantize(MONEY_STEP, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@dataclass(frozen=True)
class PromoRule:
    code: str
    discount_type: DiscountType
    value: Decimal

    def discount_for(self, subtotal: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENT:
            pct = min(max(self.value, ZERO), Decimal("100"))
            return to_money(subtotal * pct / Decimal("100"))
        return to_money(max(self.value, ZERO))


class PromoCatalog:
    """
    Code → rule lookup.

    Built from the PROMO_CODES setting by default. Adding a code means adding
    a rule here; compute_totals() never changes.
    """

    def __init__(self, rules: Iterable[PromoRule] = ()):
        self._rules = {normalize_code(r.code): r for r in rules}

    @classmethod
    def from_setting(cls, raw: str) -> "PromoCatalog":
        """Parse 'CODE:PERCENT:10,OTHER:AMOUNT:50'."""
        rules = []
        for chunk in (raw or "").split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            parts = [p.strip() for p in chunk.split(":")]
            if len(parts) != 3:
                raise ValueError(f"Invalid promo code entry: {chunk!r}")
            code, kind, value = parts
            try:
                discount_type = DiscountType(kind.upper())
            except ValueError:
                raise ValueError(f"Unknown discount type in promo entry: {chunk!r}")
            rules.append(PromoRule(code=normalize_code(code), discount_type=discount_type, value=to_money(value)))
        return cls(rules)

    def lookup(self, code: str | None) -> PromoRule | None:
        key = normalize_code(code)
        if not key:
            return None
        return self._rules.get(key)

    def codes(self) -> list[str]:
        return sorted(self._rules)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    promo_code: str | None = None

    @property
    def promo_applied(self) -> bool:
        return self.promo_code is not None

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "promoCode": self.promo_code,
            "promoApplied": self.promo_applied,
        }


def subtotal_of(items: Iterable[Priceable]) -> Decimal:
    total = ZERO
    for item in items:
        total += to_money(item.unit_price) * int(item.quantity)
    return to_money(total)


def compute_totals(
    items: Iterable[Priceable],
    promo_code: str | None = None,
    catalog: PromoCatalog | None = None,
) -> PriceBreakdown:
    subtotal = subtotal_of(items)
    rule = catalog.lookup(promo_code) if catalog else None

    discount = rule.discount_for(subtotal) if rule else ZERO
    # never discount past the subtotal
    discount = min(discount, max(subtotal, ZERO))
    total = max(ZERO, subtotal - discount)

    return PriceBreakdown(
        subtotal=subtotal,
        discount=to_money(discount),
        total=to_money(total),
        promo_code=rule.code if rule else None,
    )


_default_catalog: PromoCatalog | None = None


def default_catalog() -> PromoCatalog:
    """Catalog from settings, parsed once per process."""
    global _default_catalog
    if _default_catalog is None:
        from config import settings
        _default_catalog = PromoCatalog.from_setting(settings.promo_codes)
    return _default_catalog
