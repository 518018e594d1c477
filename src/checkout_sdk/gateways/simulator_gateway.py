"""Simulator gateway for running checkout flows without real PSP calls."""

import time
import logging
import itertools
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone

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

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass
class SimulatedIntent:
    """In-memory representation of a simulated payment intent."""
    id: str
    amount: int
    currency: str
    status: str = "requires_payment_method"
    client_secret: str = ""
    created: int = field(default_factory=lambda: int(datetime.now(timezone.utc).timestamp()))


@dataclass
class SimulatedSession:
    """In-memory representation of a simulated checkout session."""
    id: str
    line_items: List[Dict[str, Any]]
    success_url: str
    cancel_url: str
    mode: str = "payment"
    status: str = "open"
    payment_status: str = "unpaid"
    customer_email: Optional[str] = None
    payment_intent_id: Optional[str] = None

    @property
    def amount_total(self) -> int:
        return sum(i["price_data"]["unit_amount"] * i["quantity"] for i in self.line_items)


@dataclass
class SimulatorConfig:
    """Configuration for simulator behavior."""
    base_url: str = "https://checkout.simulator.local/pay"
    delay_ms: int = 0  # Simulated response delay in ms
    fail_operations: List[str] = field(default_factory=list)  # operation names that raise


class SimulatorGateway(GatewayBase):
    """
    Gateway that keeps sessions and intents in memory.

    Ids are sequential so tests can predict them. Any operation listed in
    ``config.fail_operations`` raises GatewayError, which is how callers
    exercise their failure paths.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or SimulatorConfig()
        self._sessions: Dict[str, SimulatedSession] = {}
        self._intents: Dict[str, SimulatedIntent] = {}
        self._counter = itertools.count(1)
        logger.info("SimulatorGateway initialized")

    def _generate_id(self, prefix: str) -> str:
        return f"{prefix}_sim_{next(self._counter):08d}"

    def _before(self, operation: str) -> None:
        if self.config.delay_ms > 0:
            time.sleep(self.config.delay_ms / 1000.0)
        if operation in self.config.fail_operations:
            raise GatewayError(f"Simulated failure in {operation}", error_type="api_error")

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        self._before("create_checkout_session")
        session_id = self._generate_id("cs")
        session = SimulatedSession(
            id=session_id,
            line_items=[dict(i) for i in request.line_items],
            success_url=request.success_url.replace(SESSION_ID_PLACEHOLDER, session_id),
            cancel_url=request.cancel_url.replace(SESSION_ID_PLACEHOLDER, session_id),
            mode=request.mode,
        )
        self._sessions[session_id] = session
        return CheckoutSessionResult(id=session_id, url=f"{self.config.base_url}/{session_id}")

    def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntentResult:
        self._before("create_payment_intent")
        intent_id = self._generate_id("pi")
        intent = SimulatedIntent(
            id=intent_id,
            amount=request.amount,
            currency=request.currency,
            client_secret=f"{intent_id}_secret_sim",
        )
        self._intents[intent_id] = intent
        return PaymentIntentResult(id=intent_id, client_secret=intent.client_secret)

    def retrieve_session(self, session_id: str) -> SessionDetails:
        self._before("retrieve_session")
        session = self._sessions.get(session_id)
        if session is None:
            raise GatewayError(f"No such checkout.session: '{session_id}'", error_type="invalid_request")
        intent = self._intents.get(session.payment_intent_id) if session.payment_intent_id else None
        return SessionDetails(
            id=session.id,
            status=session.status,
            payment_status=session.payment_status,
            amount_total=session.amount_total,
            currency="usd",
            customer_email=session.customer_email,
            mode=session.mode,
            payment_intent=self._details(intent) if intent else None,
        )

    def list_line_items(self, session_id: str) -> List[LineItemSummary]:
        self._before("list_line_items")
        session = self._sessions.get(session_id)
        if session is None:
            raise GatewayError(f"No such checkout.session: '{session_id}'", error_type="invalid_request")
        summaries = []
        for index, item in enumerate(session.line_items, start=1):
            price = item["price_data"]
            subtotal = price["unit_amount"] * item["quantity"]
            summaries.append(LineItemSummary(
                id=f"li_{session_id}_{index}",
                description=price["product_data"]["name"],
                quantity=item["quantity"],
                amount_subtotal=subtotal,
                amount_total=subtotal,
                currency=price["currency"],
            ))
        return summaries

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntentDetails:
        self._before("retrieve_payment_intent")
        intent = self._intents.get(payment_intent_id)
        if intent is None:
            raise GatewayError(f"No such payment_intent: '{payment_intent_id}'", error_type="invalid_request")
        return self._details(intent)

    def _details(self, intent: SimulatedIntent) -> PaymentIntentDetails:
        charge_id = f"ch_{intent.id}" if intent.status == "succeeded" else None
        return PaymentIntentDetails(
            id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
            payment_method_types=["card"],
            created=intent.created,
            latest_charge_id=charge_id,
            receipt_url=f"{self.config.base_url}/receipts/{charge_id}" if charge_id else None,
        )

    def complete_session(self, session_id: str, customer_email: Optional[str] = None) -> SessionDetails:
        """Mark a session paid, attaching a succeeded intent (simulator-specific)."""
        session = self._sessions[session_id]
        intent_id = self._generate_id("pi")
        self._intents[intent_id] = SimulatedIntent(
            id=intent_id,
            amount=session.amount_total,
            currency="usd",
            status="succeeded",
            client_secret=f"{intent_id}_secret_sim",
        )
        session.payment_intent_id = intent_id
        session.status = "complete"
        session.payment_status = "paid"
        session.customer_email = customer_email
        return self.retrieve_session(session_id)

    def set_intent_status(self, payment_intent_id: str, status: str) -> None:
        """Move a payment intent to ``status`` (simulator-specific)."""
        self._intents[payment_intent_id].status = status

    def get_session(self, session_id: str) -> Optional[SimulatedSession]:
        """Get a session from in-memory storage (for testing)."""
        return self._sessions.get(session_id)

    def clear(self) -> None:
        """Clear all stored sessions and intents (for test cleanup)."""
        self._sessions.clear()
        self._intents.clear()

    def health_check(self) -> Dict[str, Any]:
        """Return health status of the simulator."""
        return {
            "ok": True,
            "provider": "simulator",
            "session_count": len(self._sessions),
            "intent_count": len(self._intents),
        }
