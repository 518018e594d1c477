"""Shared test fixtures and configuration."""

import os
import pytest
from fastapi.testclient import TestClient

# Set up test environment variables before importing modules
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy_key_for_testing")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_dummy_key_for_testing")
os.environ.setdefault("REACT_APP_BE_URL", "http://localhost:3001")
os.environ.setdefault("REACT_APP_FE_URL", "http://localhost:3000")

from checkout_sdk.api import create_app
from checkout_sdk.callback_log import CALLBACK_ROUTES, MemoryRecorder
from checkout_sdk.catalog import Catalog, Product, default_catalog
from checkout_sdk.config import Settings
from checkout_sdk.gateways import SimulatorGateway


@pytest.fixture
def settings():
    """Settings pointing at a fixed backend and frontend."""
    return Settings(
        stripe_secret_key="sk_test_mock_key",
        stripe_publishable_key="pk_test_mock_key",
        frontend_url="http://localhost:3000",
        backend_url="http://localhost:3001",
        gateway="simulator",
    )


@pytest.fixture
def catalog():
    """The demo catalog (Product 1..5 priced 100..500)."""
    return default_catalog()


@pytest.fixture
def single_product_catalog():
    """Catalog holding only Product 1 at 100."""
    return Catalog([Product(id=1, name="Product 1", price=100)])


@pytest.fixture
def gateway():
    """Fresh in-memory simulator gateway."""
    return SimulatorGateway()


@pytest.fixture
def recorders():
    """One in-memory recorder per callback route."""
    return {route: MemoryRecorder() for route in CALLBACK_ROUTES}


@pytest.fixture
def app(settings, catalog, gateway, recorders):
    """API wired to the simulator gateway and memory recorders."""
    return create_app(settings=settings, catalog=catalog, gateway=gateway, recorders=recorders)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def valid_cart():
    """Return a valid submitted cart."""
    return [{"id": 1, "quantity": 2}, {"id": 3, "quantity": 1}]


@pytest.fixture
def make_stripe_object():
    """Build real Stripe objects from plain dicts."""
    def build(cls, data):
        return cls.construct_from(data, "sk_test_mock_key")
    return build


@pytest.fixture
def stripe_session_data():
    """Data for a completed, expanded Checkout Session."""
    return {
        "id": "cs_test_123",
        "object": "checkout.session",
        "status": "complete",
        "payment_status": "paid",
        "amount_total": 20000,
        "currency": "usd",
        "mode": "payment",
        "customer_details": {"email": "buyer@example.com"},
        "payment_intent": {
            "id": "pi_test_123",
            "object": "payment_intent",
            "status": "succeeded",
            "amount": 20000,
            "currency": "usd",
            "payment_method_types": ["card"],
            "created": 1700000000,
            "latest_charge": {
                "id": "ch_test_123",
                "object": "charge",
                "receipt_url": "https://pay.stripe.com/receipts/ch_test_123",
            },
        },
    }
