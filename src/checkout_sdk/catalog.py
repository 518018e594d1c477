"""Read-only product catalog."""

from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    """A purchasable product. Price is in whole currency units."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: int


class Catalog:
    """Immutable, ordered set of products looked up by id.

    Built once at startup and handed to the checkout builder and the HTTP
    app, so tests can run against alternate catalogs.
    """

    def __init__(self, products: Iterable[Product]):
        ordered = tuple(products)
        by_id: Dict[int, Product] = {}
        for product in ordered:
            if product.id in by_id:
                raise ValueError(f"Duplicate product id in catalog: {product.id}")
            by_id[product.id] = product
        self._products: Tuple[Product, ...] = ordered
        self._by_id = by_id

    def list_products(self) -> Tuple[Product, ...]:
        return self._products

    def get(self, product_id) -> Optional[Product]:
        # bool is an int subclass; True must not resolve to product 1
        if isinstance(product_id, bool):
            return None
        # JSON clients may send 1.0 for product 1
        if isinstance(product_id, float) and product_id.is_integer():
            product_id = int(product_id)
        if not isinstance(product_id, int):
            return None
        return self._by_id.get(product_id)

    def __contains__(self, product_id) -> bool:
        return self.get(product_id) is not None

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self):
        return iter(self._products)


def default_catalog() -> Catalog:
    """The demo catalog served by the storefront."""
    return Catalog(
        Product(id=i, name=f"Product {i}", price=i * 100) for i in range(1, 6)
    )
