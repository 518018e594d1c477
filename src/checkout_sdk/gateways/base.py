from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

# Canonical models
class CheckoutSessionRequest(BaseModel):
    line_items: List[Dict[str, Any]]  # gateway price_data shape
    success_url: str
    cancel_url: str
    mode: str = "payment"
    allow_promotion_codes: bool = True

class CheckoutSessionResult(BaseModel):
    id: str
    url: Optional[str] = None

class PaymentIntentRequest(BaseModel):
    amount: int  # minor units
    currency: str = "usd"
    automatic_payment_methods: bool = True

class PaymentIntentResult(BaseModel):
    id: str
    client_secret: Optional[str] = None

class PaymentIntentDetails(BaseModel):
    id: str
    status: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    payment_method_types: List[str] = Field(default_factory=list)
    created: Optional[int] = None
    latest_charge_id: Optional[str] = None
    receipt_url: Optional[str] = None

class SessionDetails(BaseModel):
    id: str
    status: Optional[str] = None
    payment_status: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    mode: Optional[str] = None
    # None when no payment was attempted (e.g. cancelled before paying)
    payment_intent: Optional[PaymentIntentDetails] = None

class LineItemSummary(BaseModel):
    id: str
    description: Optional[str] = None
    quantity: Optional[int] = None
    amount_subtotal: Optional[int] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None

class GatewayBase(ABC):
    """
    Payment gateway interface. Creation calls are the only writes; everything
    else is a read by id. Implementations raise GatewayError on failure.
    """

    @abstractmethod
    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        """
        Create a hosted checkout session. The success/cancel URLs may contain
        the gateway's session id placeholder.
        """
        raise NotImplementedError

    @abstractmethod
    def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntentResult:
        raise NotImplementedError

    @abstractmethod
    def retrieve_session(self, session_id: str) -> SessionDetails:
        raise NotImplementedError

    @abstractmethod
    def list_line_items(self, session_id: str) -> List[LineItemSummary]:
        raise NotImplementedError

    @abstractmethod
    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntentDetails:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True}
