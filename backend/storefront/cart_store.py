"""
Client-held cart: ordered line items for one shopper, one writer.

Mutations follow the storefront rules:
  - add_item on an existing reference increments quantity by 1
  - change_quantity below 1 removes the line; unknown references are ignored
  - remove_item / clear never fail

Every mutation persists through the backend and then publishes the unit
count to subscribers (badge refresh). Storage is pluggable: memory for
tests and scripts, a JSON file when the cart must survive a restart.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Callable, Protocol

from domain.enums import ItemKind
from services.pricing import PriceBreakdown, PromoCatalog, compute_totals, default_catalog, to_money

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    reference_id: str
    kind: str
    title: str
    unit_price: Decimal
    quantity: int = 1
    image: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            reference_id=str(data["reference_id"]),
            kind=data.get("kind", ItemKind.PRODUCT.value),
            title=data.get("title", ""),
            unit_price=to_money(data.get("unit_price", "0")),
            quantity=int(data.get("quantity", 1)),
            image=data.get("image", ""),
        )


class CartBackend(Protocol):
    def load(self) -> list[LineItem]: ...

    def save(self, items: list[LineItem]) -> None: ...


class MemoryCartBackend:
    def __init__(self):
        self._items: list[LineItem] = []

    def load(self) -> list[LineItem]:
        return [_copy(i) for i in self._items]

    def save(self, items: list[LineItem]) -> None:
        self._items = [_copy(i) for i in items]


class JsonFileCartBackend:
    """Durable across restarts, like the browser's local storage cart."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> list[LineItem]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Cart file {self.path} unreadable, starting empty: {e}")
            return []
        return [LineItem.from_dict(d) for d in payload.get("items", [])]

    def save(self, items: list[LineItem]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        payload = {
            "items": [i.to_dict() for i in items],
            "count": sum(i.quantity for i in items),
        }
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        os.replace(tmp, self.path)


CountListener = Callable[[int], None]


def _copy(line: LineItem) -> LineItem:
    return LineItem(**asdict(line))


class CartStore:
    def __init__(self, backend: CartBackend | None = None, catalog: PromoCatalog | None = None):
        self._backend = backend or MemoryCartBackend()
        self._catalog = catalog
        self._items: list[LineItem] = self._backend.load()
        self._listeners: list[CountListener] = []

    # ── Queries ─────────────────────────────────────────────────────

    @property
    def items(self) -> list[LineItem]:
        return [_copy(i) for i in self._items]

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def get(self, reference_id: str) -> LineItem | None:
        """A copy of the line; edit it through the mutation methods."""
        line = self._find(reference_id)
        return _copy(line) if line else None

    def _find(self, reference_id: str) -> LineItem | None:
        for item in self._items:
            if item.reference_id == reference_id:
                return item
        return None

    def quote(self, promo_code: str | None = None) -> PriceBreakdown:
        return compute_totals(self._items, promo_code, self._catalog or default_catalog())

    # ── Mutations ───────────────────────────────────────────────────

    def add_item(self, reference_id: str, kind: str, title: str, unit_price, image: str = "") -> LineItem:
        existing = self._find(reference_id)
        if existing:
            existing.quantity += 1
            line = existing
        else:
            line = LineItem(
                reference_id=reference_id,
                kind=(kind or ItemKind.PRODUCT.value).lower(),
                title=title,
                unit_price=to_money(unit_price),
                quantity=1,
                image=image,
            )
            self._items.append(line)
        self._commit()
        return _copy(line)

    def change_quantity(self, reference_id: str, delta: int) -> None:
        line = self._find(reference_id)
        if line is None:
            return
        line.quantity += int(delta)
        if line.quantity < 1:
            self._items.remove(line)
        self._commit()

    def remove_item(self, reference_id: str) -> None:
        line = self._find(reference_id)
        if line is None:
            return
        self._items.remove(line)
        self._commit()

    def clear(self) -> None:
        self._items = []
        self._commit()

    # ── Subscriptions ───────────────────────────────────────────────

    def subscribe(self, listener: CountListener) -> Callable[[], None]:
        """Register a count listener; returns the unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self) -> None:
        self._backend.save(self._items)
        count = self.item_count
        for listener in list(self._listeners):
            try:
                listener(count)
            except Exception as e:
                # display sync only; a broken badge never blocks the cart
                logger.warning(f"Cart count listener failed: {e}")
