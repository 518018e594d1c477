"""Exception types raised by the checkout service."""

from typing import Any, Optional


class CheckoutError(Exception):
    """Base class for all checkout errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CheckoutError):
    """Input rejected before any gateway call. Surfaced as HTTP 400."""

    status_code = 400


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Please add items to the cart!!")


class UnknownProductError(ValidationError):
    def __init__(self, product_id: Any):
        super().__init__(f"Invalid product id: {product_id}")
        self.product_id = product_id


class InvalidQuantityError(ValidationError):
    def __init__(self, product_id: Any):
        super().__init__(f"Invalid quantity for product id: {product_id}")
        self.product_id = product_id


class InvalidAmountError(ValidationError):
    def __init__(self, amount: Any):
        super().__init__("Please specify a valid amount in cents")
        self.amount = amount


class GatewayError(CheckoutError):
    """A payment gateway call failed or returned an unusable object.

    Args:
        message: Underlying error text.
        error_type: Coarse classification of the failure (card_error,
            rate_limit, connection_error, ...).
    """

    def __init__(self, message: str, error_type: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type or "api_error"


class LoggingError(CheckoutError):
    """Appending a callback record failed."""
