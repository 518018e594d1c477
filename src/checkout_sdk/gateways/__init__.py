"""Payment gateway adapters."""

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
from .stripe_gateway import StripeGateway
from .simulator_gateway import (
    SimulatorGateway,
    SimulatorConfig,
    SimulatedSession,
    SimulatedIntent,
)

__all__ = [
    # Base classes and models
    "GatewayBase",
    "CheckoutSessionRequest",
    "CheckoutSessionResult",
    "PaymentIntentRequest",
    "PaymentIntentResult",
    "PaymentIntentDetails",
    "SessionDetails",
    "LineItemSummary",
    # Gateways
    "StripeGateway",
    "SimulatorGateway",
    "SimulatorConfig",
    "SimulatedSession",
    "SimulatedIntent",
]
