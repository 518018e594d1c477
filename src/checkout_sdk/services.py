"""Checkout service layer between the HTTP routes and the payment gateway."""

import logging
from typing import Any, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from .cart import coerce_positive_int
from .catalog import Catalog
from .checkout import CURRENCY, CartInput, build_line_items
from .config import Settings
from .errors import GatewayError, InvalidAmountError
from .gateways.base import (
    GatewayBase,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentIntentRequest,
    PaymentIntentResult,
)

logger = logging.getLogger(__name__)


class CheckoutService:
    """Creates checkout sessions and payment intents for a cart."""

    def __init__(self, catalog: Catalog, gateway: GatewayBase, settings: Settings):
        """Initialize the service.

        Args:
            catalog: Catalog used to validate carts.
            gateway: Gateway adapter that talks to the payment provider.
            settings: Supplies the backend URL for success/cancel callbacks.
        """
        self.catalog = catalog
        self.gateway = gateway
        self.settings = settings

    async def create_checkout_session(
        self, cart: Optional[Sequence[CartInput]]
    ) -> CheckoutSessionResult:
        """Validate ``cart`` and open a hosted checkout session for it.

        Args:
            cart: Submitted cart entries.

        Returns:
            The created session; ``url`` is always set.

        Raises:
            ValidationError: If the cart is empty or holds a bad entry. The
                gateway is not called in that case.
            GatewayError: If the gateway fails or returns no URL.
        """
        line_items = build_line_items(cart, self.catalog)
        request = CheckoutSessionRequest(
            line_items=[item.to_gateway_params() for item in line_items],
            mode="payment",
            allow_promotion_codes=True,
            success_url=self.settings.success_url,
            cancel_url=self.settings.cancel_url,
        )
        session = await self._call(self.gateway.create_checkout_session, request)
        if not session.url:
            raise GatewayError(f"Checkout session {session.id} has no redirect URL")
        logger.info(f"Created checkout session {session.id} with {len(line_items)} line items")
        return session

    async def create_payment_intent(self, amount: Any) -> PaymentIntentResult:
        """Create a payment intent for ``amount`` cents.

        Raises:
            InvalidAmountError: If ``amount`` is not a positive integer.
            GatewayError: If the gateway fails or returns no client secret.
        """
        amount_minor = coerce_positive_int(amount)
        if amount_minor is None:
            raise InvalidAmountError(amount)
        request = PaymentIntentRequest(amount=amount_minor, currency=CURRENCY)
        intent = await self._call(self.gateway.create_payment_intent, request)
        if not intent.client_secret:
            raise GatewayError(f"Payment intent {intent.id} has no client secret")
        logger.info(f"Created payment intent {intent.id} for {amount_minor} {CURRENCY}")
        return intent

    async def _call(self, operation, *args):
        # SDK calls block; keep them off the event loop
        try:
            return await run_in_threadpool(operation, *args)
        except GatewayError:
            raise
        except Exception as e:
            name = getattr(operation, "__name__", "gateway operation")
            logger.exception(f"Gateway call {name} failed")
            raise GatewayError(str(e)) from e
