"""Storefront view state: catalog listing, cart, and checkout hand-off.

The storefront talks to the API over HTTP. It either sends the cart to
``/create-checkout-session`` and hands back the hosted checkout URL, or, for
the embedded payment widget, keeps a payment intent client secret in step
with the cart total.
"""

import enum
import logging
from typing import Any, List, Optional

import httpx

from .cart import Cart
from .catalog import Product
from .errors import UnknownProductError

logger = logging.getLogger(__name__)


class StorefrontState(str, enum.Enum):
    """Where the storefront is in its lifecycle."""
    LOADING = "loading"
    LOADED_EMPTY = "loaded-empty"
    LOADED = "loaded"
    CHECKING_OUT = "checking-out"


class CheckoutFailed(Exception):
    """The checkout endpoint did not return a usable redirect URL."""


class Storefront:
    """Client-side storefront state machine.

    Args:
        client: HTTP client whose base URL points at the API.
        embedded_payments: When True, every cart change refreshes the
            payment intent client secret for the embedded payment widget.
        return_url: Where the payment widget sends the buyer after
            confirming payment.
    """

    def __init__(
        self,
        client: httpx.Client,
        embedded_payments: bool = False,
        return_url: Optional[str] = None,
    ):
        self.client = client
        self.embedded_payments = embedded_payments
        self.return_url = return_url or str(client.base_url.join("/redirect"))
        self.state = StorefrontState.LOADING
        self.products: List[Product] = []
        self.cart = Cart()
        self.client_secret: Optional[str] = None
        self.redirect_url: Optional[str] = None

    def load_products(self) -> List[Product]:
        """Fetch the catalog. Failure or an empty catalog leaves the store empty."""
        self.state = StorefrontState.LOADING
        try:
            response = self.client.get("/products")
            response.raise_for_status()
            data = response.json()
            products = []
            if data.get("success"):
                products = [Product(**p) for p in data.get("products") or []]
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error fetching products: {e}")
            self.products = []
            self.cart.clear()
            self.state = StorefrontState.LOADED_EMPTY
            return self.products

        self.products = products
        self.state = StorefrontState.LOADED if self.products else StorefrontState.LOADED_EMPTY
        return self.products

    def product(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def add_to_cart(self, product_id: int) -> None:
        if self.product(product_id) is None:
            raise UnknownProductError(product_id)
        self.cart.add(product_id)
        self._cart_changed()

    def remove_from_cart(self, product_id: int) -> None:
        self.cart.remove(product_id)
        self._cart_changed()

    def update_cart(self, product_id: int, quantity: Any) -> None:
        if self.product(product_id) is None:
            raise UnknownProductError(product_id)
        self.cart.update(product_id, quantity)
        self._cart_changed()

    @property
    def total(self) -> int:
        """Cart total in whole currency units."""
        return self.cart.total(self.products)

    def checkout(self) -> str:
        """Send the cart to the API and return the hosted checkout URL.

        On success the storefront stays in ``checking-out``: the caller is
        expected to navigate away to the returned URL.

        Raises:
            CheckoutFailed: If the request fails or no URL comes back. The
                state returns to ``loaded``.
        """
        if self.state is not StorefrontState.LOADED:
            raise CheckoutFailed(f"Cannot check out while {self.state.value}")

        self.state = StorefrontState.CHECKING_OUT
        try:
            response = self.client.post("/create-checkout-session", json={"cart": self.cart.to_payload()})
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Unexpected checkout response: {data!r}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Facing error while making checkout: {e}")
            self.state = StorefrontState.LOADED
            raise CheckoutFailed(str(e)) from e

        if not response.is_success or not data.get("success") or not data.get("url"):
            self.state = StorefrontState.LOADED
            raise CheckoutFailed(data.get("message") or f"Checkout failed with HTTP {response.status_code}")

        self.redirect_url = data["url"]
        logger.info(f"Redirecting to {self.redirect_url}")
        return self.redirect_url

    def refresh_client_secret(self) -> Optional[str]:
        """Fetch a client secret for the current cart total.

        An empty cart clears the secret without calling the API. Errors are
        logged and leave the secret unset.
        """
        if self.cart.is_empty:
            self.client_secret = None
            return None
        try:
            response = self.client.post("/create-payment-intent", json={"amount": self.total * 100})
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Unexpected payment intent response: {data!r}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching client secret: {e}")
            self.client_secret = None
            return None
        if not response.is_success or not data.get("success"):
            logger.error(f"Payment intent rejected: {data.get('message')}")
            self.client_secret = None
            return None
        self.client_secret = data.get("clientSecret")
        return self.client_secret

    def _cart_changed(self) -> None:
        if self.embedded_payments:
            self.refresh_client_secret()
