"""Validate a submitted cart and turn it into gateway line items."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from .cart import CartItem, coerce_positive_int
from .catalog import Catalog
from .errors import EmptyCartError, InvalidQuantityError, UnknownProductError

logger = logging.getLogger(__name__)

CURRENCY = "usd"


class CheckoutLineItem(BaseModel):
    """Cart item joined with its product, amounts in minor units."""

    currency: str = CURRENCY
    unit_amount: int
    product_name: str
    quantity: int

    def to_gateway_params(self) -> Dict[str, Any]:
        return {
            "price_data": {
                "currency": self.currency,
                "product_data": {"name": self.product_name},
                "unit_amount": self.unit_amount,
            },
            "quantity": self.quantity,
        }


CartInput = Union[CartItem, Mapping[str, Any]]


def _item_fields(item: CartInput):
    if isinstance(item, CartItem):
        return item.product_id, item.quantity
    if isinstance(item, Mapping):
        product_id = item.get("id", item.get("productId"))
        return product_id, item.get("quantity")
    return None, None


def build_line_items(
    cart: Optional[Sequence[CartInput]],
    catalog: Catalog,
) -> List[CheckoutLineItem]:
    """Build one line item per cart entry, preserving cart order.

    The whole cart is validated before anything is returned, so a bad entry
    never yields a partial list.

    Args:
        cart: Submitted cart entries, either ``CartItem`` objects or raw
            mappings with ``id`` (or ``productId``) and ``quantity``.
        catalog: Catalog to resolve product ids against.

    Returns:
        Line items with ``unit_amount = price * 100``.

    Raises:
        EmptyCartError: If the cart is missing, empty or not a list.
        UnknownProductError: If an id is not in the catalog.
        InvalidQuantityError: If a quantity is not a positive integer.
    """
    logger.debug(f"cart -> {cart}")
    if not cart or not isinstance(cart, (list, tuple)):
        raise EmptyCartError()

    resolved = []
    for item in cart:
        product_id, raw_quantity = _item_fields(item)
        product = catalog.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        quantity = coerce_positive_int(raw_quantity)
        if quantity is None:
            raise InvalidQuantityError(product_id)
        resolved.append((product, quantity))

    line_items = [
        CheckoutLineItem(
            currency=CURRENCY,
            unit_amount=product.price * 100,
            product_name=product.name,
            quantity=quantity,
        )
        for product, quantity in resolved
    ]
    logger.debug(f"line_items -> {line_items}")
    return line_items
