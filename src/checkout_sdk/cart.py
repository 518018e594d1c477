"""Cart items and the client-side cart."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import Product
from .errors import InvalidQuantityError

logger = logging.getLogger(__name__)


def coerce_positive_int(value: Any) -> Optional[int]:
    """Return ``value`` as a positive int, or None if it is not one.

    Accepts ints, integral floats (``2.0``) and numeric strings (``"2"``).
    Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
        if isinstance(value, int):
            return value if value > 0 else None
    if isinstance(value, float):
        if not value.is_integer() or value <= 0:
            return None
        return int(value)
    return None


class CartItem(BaseModel):
    """A product id and a positive quantity."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="id")
    quantity: int = Field(..., gt=0)

    def to_payload(self) -> Dict[str, int]:
        return {"id": self.product_id, "quantity": self.quantity}


class Cart:
    """Ordered cart, unique by product id.

    Updates replace the stored quantity; an item whose quantity drops to
    zero is removed rather than kept at zero.
    """

    def __init__(self, items: Optional[Iterable[CartItem]] = None):
        self._items: Dict[int, CartItem] = {}
        for item in items or ():
            self._items[item.product_id] = item

    def add(self, product_id: int) -> None:
        current = self._items.get(product_id)
        quantity = current.quantity + 1 if current else 1
        self._items[product_id] = CartItem(id=product_id, quantity=quantity)

    def remove(self, product_id: int) -> None:
        current = self._items.get(product_id)
        if current is None:
            return
        if current.quantity <= 1:
            del self._items[product_id]
        else:
            self._items[product_id] = CartItem(id=product_id, quantity=current.quantity - 1)

    def update(self, product_id: int, quantity: Any) -> None:
        """Set the quantity for ``product_id``. Zero or less removes the item."""
        parsed = coerce_positive_int(quantity)
        if parsed is None:
            if _is_non_positive_number(quantity):
                self._items.pop(product_id, None)
                return
            raise InvalidQuantityError(product_id)
        if product_id not in self._items:
            logger.debug(f"Added product {product_id} to cart via update")
        self._items[product_id] = CartItem(id=product_id, quantity=parsed)

    def clear(self) -> None:
        self._items.clear()

    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def quantity_of(self, product_id: int) -> int:
        item = self._items.get(product_id)
        return item.quantity if item else 0

    @property
    def is_empty(self) -> bool:
        return not self._items

    def total(self, products: Iterable[Product]) -> int:
        """Total in whole currency units; unknown products count as zero."""
        prices = {p.id: p.price for p in products}
        return sum(prices.get(i.product_id, 0) * i.quantity for i in self._items.values())

    def to_payload(self) -> List[Dict[str, int]]:
        return [item.to_payload() for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)


def _is_non_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return False
    return isinstance(value, (int, float)) and value <= 0
