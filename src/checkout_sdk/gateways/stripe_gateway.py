import os
import logging
from typing import Any, Dict, List, Optional
import stripe
from ..errors import GatewayError
from .base import (
    GatewayBase,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentIntentRequest,
    PaymentIntentResult,
    PaymentIntentDetails,
    SessionDetails,
    LineItemSummary,
)

logger = logging.getLogger(__name__)

# Fields expanded when reading a session back after checkout
SESSION_EXPAND = ["payment_intent", "payment_intent.latest_charge", "customer"]


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` from a Stripe object or dict, None when absent."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _object_id(obj: Any) -> Optional[str]:
    # Unexpanded references come back as plain id strings
    if obj is None or isinstance(obj, str):
        return obj
    return _field(obj, "id")


def classify_stripe_error(error: "stripe.error.StripeError") -> str:
    if isinstance(error, stripe.error.CardError):
        return "card_error"
    if isinstance(error, stripe.error.RateLimitError):
        return "rate_limit"
    if isinstance(error, stripe.error.InvalidRequestError):
        return "invalid_request"
    if isinstance(error, stripe.error.AuthenticationError):
        return "authentication_error"
    if isinstance(error, stripe.error.APIConnectionError):
        return "connection_error"
    return "api_error"


def payment_intent_details(pi: Any) -> PaymentIntentDetails:
    """Normalize an expanded PaymentIntent into PaymentIntentDetails."""
    latest_charge = _field(pi, "latest_charge")
    charges = _field(_field(pi, "charges"), "data") or []
    first_charge = charges[0] if charges else None

    receipt_url = _field(first_charge, "receipt_url")
    if receipt_url is None and not isinstance(latest_charge, str):
        receipt_url = _field(latest_charge, "receipt_url")

    return PaymentIntentDetails(
        id=_field(pi, "id"),
        status=_field(pi, "status"),
        amount=_field(pi, "amount"),
        currency=_field(pi, "currency"),
        payment_method_types=list(_field(pi, "payment_method_types") or []),
        created=_field(pi, "created"),
        latest_charge_id=_object_id(latest_charge) or _object_id(first_charge),
        receipt_url=receipt_url,
    )


def session_details(session: Any) -> SessionDetails:
    """Normalize a retrieved Checkout Session into SessionDetails."""
    pi = _field(session, "payment_intent")
    return SessionDetails(
        id=_field(session, "id"),
        status=_field(session, "status"),
        payment_status=_field(session, "payment_status"),
        amount_total=_field(session, "amount_total"),
        currency=_field(session, "currency"),
        customer_email=_field(_field(session, "customer_details"), "email"),
        mode=_field(session, "mode"),
        # An unexpanded id string carries no status to report
        payment_intent=payment_intent_details(pi) if pi and not isinstance(pi, str) else None,
    )


class StripeGateway(GatewayBase):
    """
    Stripe gateway using stripe-python. Checkout goes through hosted Checkout
    Sessions; the embedded widget path uses PaymentIntents whose client_secret
    is handed to Stripe.js on the frontend.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or os.getenv("STRIPE_SECRET_KEY", "")
        if not self._api_key:
            raise ValueError("STRIPE_SECRET_KEY is not configured")

    def _fail(self, operation: str, e: "stripe.error.StripeError") -> GatewayError:
        error_type = classify_stripe_error(e)
        logger.error(f"Stripe {operation} failed ({error_type}): {e}")
        return GatewayError(str(e), error_type=error_type)

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                line_items=request.line_items,
                mode=request.mode,
                allow_promotion_codes=request.allow_promotion_codes,
                success_url=request.success_url,
                cancel_url=request.cancel_url,
            )
        except stripe.error.StripeError as e:
            raise self._fail("checkout session create", e) from e
        logger.debug(f"session -> {session}")
        return CheckoutSessionResult(id=_field(session, "id"), url=_field(session, "url"))

    def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntentResult:
        try:
            pi = stripe.PaymentIntent.create(
                api_key=self._api_key,
                amount=request.amount,
                currency=request.currency,
                automatic_payment_methods={"enabled": request.automatic_payment_methods},
            )
        except stripe.error.StripeError as e:
            raise self._fail("payment intent create", e) from e
        return PaymentIntentResult(id=_field(pi, "id"), client_secret=_field(pi, "client_secret"))

    def retrieve_session(self, session_id: str) -> SessionDetails:
        try:
            session = stripe.checkout.Session.retrieve(
                session_id, api_key=self._api_key, expand=SESSION_EXPAND
            )
        except stripe.error.StripeError as e:
            raise self._fail("checkout session retrieve", e) from e
        return session_details(session)

    def list_line_items(self, session_id: str) -> List[LineItemSummary]:
        try:
            items = stripe.checkout.Session.list_line_items(session_id, api_key=self._api_key)
        except stripe.error.StripeError as e:
            raise self._fail("line item list", e) from e
        return [
            LineItemSummary(
                id=_field(item, "id"),
                description=_field(item, "description"),
                quantity=_field(item, "quantity"),
                amount_subtotal=_field(item, "amount_subtotal"),
                amount_total=_field(item, "amount_total"),
                currency=_field(item, "currency"),
            )
            for item in (_field(items, "data") or [])
        ]

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntentDetails:
        try:
            pi = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self._api_key)
        except stripe.error.StripeError as e:
            raise self._fail("payment intent retrieve", e) from e
        return payment_intent_details(pi)

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": "stripe", "live_mode": self._api_key.startswith("sk_live_")}
