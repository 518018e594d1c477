"""Tests for API endpoints."""

from dataclasses import replace

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from checkout_sdk.api import create_app
from checkout_sdk.callback_log import MemoryRecorder
from checkout_sdk.errors import GatewayError, LoggingError
from checkout_sdk.gateways import (
    GatewayBase,
    PaymentIntentRequest,
    SimulatorConfig,
    SimulatorGateway,
)


class TestProductsEndpoint:
    """Tests for GET /products."""

    def test_list_products(self, client):
        response = client.get("/products")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Products fetched successfully"
        assert data["products"][0] == {"id": 1, "name": "Product 1", "price": 100}
        assert len(data["products"]) == 5


class TestCreateCheckoutSessionEndpoint:
    """Tests for POST /create-checkout-session."""

    def test_success(self, client, gateway, valid_cart):
        response = client.post("/create-checkout-session", json={"cart": valid_cart})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Session initiated"
        session_id = data["url"].rsplit("/", 1)[-1]
        assert gateway.get_session(session_id).amount_total == 50000

    @pytest.mark.parametrize("body", [{}, {"cart": []}, {"cart": None}])
    def test_empty_cart(self, client, gateway, body):
        response = client.post("/create-checkout-session", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Please add items to the cart!!"}
        assert gateway.health_check()["session_count"] == 0

    def test_unknown_product(self, client):
        response = client.post("/create-checkout-session", json={"cart": [{"id": 99, "quantity": 1}]})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product id: 99"

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "x"])
    def test_invalid_quantity(self, client, quantity):
        response = client.post("/create-checkout-session", json={"cart": [{"id": 2, "quantity": quantity}]})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid quantity for product id: 2"

    @pytest.mark.parametrize("body", [{"cart": "abc"}, {"cart": {"id": 1, "quantity": 1}}, {"cart": 7}, [], "cart"])
    def test_non_list_cart_or_body(self, client, gateway, body):
        response = client.post("/create-checkout-session", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Please add items to the cart!!"}
        assert gateway.health_check()["session_count"] == 0

    def test_missing_body(self, client):
        response = client.post("/create-checkout-session")

        assert response.status_code == 400
        assert response.json()["message"] == "Please add items to the cart!!"

    def test_invalid_json(self, client):
        response = client.post(
            "/create-checkout-session",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Please add items to the cart!!"}

    def test_non_object_cart_entry(self, client):
        response = client.post("/create-checkout-session", json={"cart": [5]})
        assert response.status_code == 400

    def test_gateway_failure(self, settings, catalog, recorders, valid_cart):
        gateway = SimulatorGateway(SimulatorConfig(fail_operations=["create_checkout_session"]))
        client = TestClient(create_app(settings, catalog, gateway, recorders))

        response = client.post("/create-checkout-session", json={"cart": valid_cart})

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Error creating checkout session"
        assert "Simulated failure" in data["error"]


class TestCreatePaymentIntentEndpoint:
    """Tests for POST /create-payment-intent."""

    def test_success(self, client):
        response = client.post("/create-payment-intent", json={"amount": 2500})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Intent created"
        assert "_secret_" in data["clientSecret"]

    @pytest.mark.parametrize("body", [{}, {"amount": 0}, {"amount": -5}, {"amount": 12.5}, {"amount": "abc"}])
    def test_invalid_amount(self, client, gateway, body):
        response = client.post("/create-payment-intent", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Please specify a valid amount in cents"
        assert gateway.health_check()["intent_count"] == 0

    @pytest.mark.parametrize("body", [[], "abc", 100])
    def test_non_object_body(self, client, gateway, body):
        response = client.post("/create-payment-intent", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Please specify a valid amount in cents"}
        assert gateway.health_check()["intent_count"] == 0

    def test_missing_body(self, client):
        response = client.post("/create-payment-intent")

        assert response.status_code == 400
        assert response.json()["message"] == "Please specify a valid amount in cents"

    def test_invalid_json(self, client):
        response = client.post(
            "/create-payment-intent",
            content=b"amount=5",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_gateway_failure(self, settings, catalog, recorders):
        gateway = SimulatorGateway(SimulatorConfig(fail_operations=["create_payment_intent"]))
        client = TestClient(create_app(settings, catalog, gateway, recorders))

        response = client.post("/create-payment-intent", json={"amount": 100})

        assert response.status_code == 500
        assert response.json()["message"] == "Error creating payment intent"


class TestSessionCallbacks:
    """Tests for GET /success and GET /cancel."""

    @pytest.mark.parametrize("route", ["success", "cancel"])
    def test_without_session_id(self, client, recorders, route):
        response = client.get(f"/{route}")

        assert response.status_code == 200
        assert response.text == f"Payment {route} recorded (no session_id provided)"
        records = recorders[route].records
        assert len(records) == 1
        assert records[0]["method"] == "GET"
        assert records[0]["url"] == f"/{route}"
        assert records[0]["query"] == {}
        assert records[0]["body"] == {}
        assert "timestamp" in records[0]

    def test_success_enriched(self, client, gateway, recorders, valid_cart):
        url = client.post("/create-checkout-session", json={"cart": valid_cart}).json()["url"]
        session_id = url.rsplit("/", 1)[-1]
        gateway.complete_session(session_id, customer_email="buyer@example.com")

        response = client.get("/success", params={"session_id": session_id})

        assert response.status_code == 200
        assert response.text == "Payment success recorded"
        base, details = recorders["success"].records
        assert base["query"] == {"session_id": session_id}
        assert base["url"] == f"/success?session_id={session_id}"
        assert details["logType"] == "payment_success"
        assert details["session"]["id"] == session_id
        assert details["session"]["customer_email"] == "buyer@example.com"
        assert details["payment_intent"]["status"] == "succeeded"
        assert [i["description"] for i in details["line_items"]] == ["Product 1", "Product 3"]

    def test_cancel_enriched_without_payment(self, client, gateway, recorders, valid_cart):
        url = client.post("/create-checkout-session", json={"cart": valid_cart}).json()["url"]
        session_id = url.rsplit("/", 1)[-1]

        response = client.get("/cancel", params={"session_id": session_id})

        assert response.status_code == 200
        assert response.text == "Payment cancel recorded"
        details = recorders["cancel"].records[1]
        assert details["logType"] == "payment_cancel"
        assert details["payment_intent"] is None
        assert len(details["line_items"]) == 2

    def test_repeat_calls_append_again(self, client, recorders):
        client.get("/success")
        client.get("/success")
        assert len(recorders["success"].records) == 2

    def test_unknown_session_is_500_after_base_record(self, client, recorders):
        response = client.get("/success", params={"session_id": "cs_missing"})

        assert response.status_code == 500
        assert response.text == "Error recording payment success"
        assert len(recorders["success"].records) == 1

    def test_detail_write_failure_still_200(self, settings, catalog, gateway, valid_cart):
        class FailSecondWrite(MemoryRecorder):
            def record(self, event):
                if self.records:
                    raise LoggingError("disk full")
                super().record(event)

        recorders = {"success": FailSecondWrite(), "cancel": MemoryRecorder(), "redirect": MemoryRecorder()}
        client = TestClient(create_app(settings, catalog, gateway, recorders))
        url = client.post("/create-checkout-session", json={"cart": valid_cart}).json()["url"]

        response = client.get("/success", params={"session_id": url.rsplit("/", 1)[-1]})

        assert response.status_code == 200
        assert len(recorders["success"].records) == 1

    def test_base_write_failure_is_500(self, settings, catalog, gateway):
        failing = MagicMock()
        failing.record.side_effect = LoggingError("read-only filesystem")
        recorders = {"success": failing, "cancel": MemoryRecorder(), "redirect": MemoryRecorder()}
        client = TestClient(create_app(settings, catalog, gateway, recorders))

        response = client.get("/success")

        assert response.status_code == 500

    def test_callbacks_are_get_only(self, client):
        assert client.post("/success").status_code == 405
        assert client.post("/cancel").status_code == 405


class TestRedirectCallback:
    """Tests for GET /redirect."""

    @pytest.fixture
    def intent_id(self, gateway):
        return gateway.create_payment_intent(PaymentIntentRequest(amount=1000)).id

    def test_succeeded(self, client, gateway, recorders, intent_id):
        gateway.set_intent_status(intent_id, "succeeded")

        response = client.get("/redirect", params={"payment_intent": intent_id, "redirect_status": "succeeded"})

        assert response.status_code == 200
        assert "Payment Successful!" in response.text
        base, details = recorders["redirect"].records
        assert "body" not in base
        assert details["logType"] == "payment_redirect"
        assert details["redirect_status"] == "succeeded"
        assert details["payment_intent_status"] == "succeeded"
        assert details["payment_intent"]["id"] == intent_id

    def test_processing(self, client, gateway, intent_id):
        gateway.set_intent_status(intent_id, "processing")

        response = client.get("/redirect", params={"payment_intent": intent_id})

        assert response.status_code == 200
        assert "Payment processing." in response.text

    def test_requires_action_is_400_with_status(self, client, gateway, intent_id):
        gateway.set_intent_status(intent_id, "requires_action")

        response = client.get("/redirect", params={"payment_intent": intent_id, "redirect_status": "failed"})

        assert response.status_code == 400
        assert "Payment failed." in response.text
        assert "Status: requires_action" in response.text

    def test_status_is_escaped(self, client, gateway, intent_id):
        gateway.set_intent_status(intent_id, "<script>")

        response = client.get("/redirect", params={"payment_intent": intent_id})

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text

    def test_missing_payment_intent(self, client, recorders):
        response = client.get("/redirect")

        assert response.status_code == 200
        assert "Missing payment information" in response.text
        assert "http://localhost:3000/payment-status?status=error" in response.text
        assert len(recorders["redirect"].records) == 1

    def test_gateway_failure_logs_error_record(self, client, recorders):
        response = client.get("/redirect", params={"payment_intent": "pi_missing"})

        assert response.status_code == 500
        assert "An unexpected error occurred" in response.text
        base, error = recorders["redirect"].records
        assert error["logType"] == "error"
        assert "pi_missing" in error["error"]


class TestMiscEndpoints:
    """Tests for /config, /health, CORS and rate limiting."""

    def test_config(self, client):
        assert client.get("/config").json() == {"publishableKey": "pk_test_mock_key"}

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["ok"] is True
        assert data["provider"] == "simulator"

    def test_cors_allows_frontend(self, client):
        response = client.options(
            "/create-checkout-session",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_rate_limiter_is_configured(self, app):
        assert hasattr(app.state, "limiter")

    def test_rate_limit_exceeded(self, settings, catalog, gateway, recorders):
        limited = replace(settings, rate_limit="2/minute")
        client = TestClient(create_app(limited, catalog, gateway, recorders))

        statuses = [client.post("/create-payment-intent", json={"amount": 100}).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]

    def test_unexpected_gateway_health_error_is_500(self, settings, catalog, recorders):
        gateway = MagicMock(spec=GatewayBase)
        gateway.health_check.side_effect = GatewayError("unreachable")
        client = TestClient(create_app(settings, catalog, gateway, recorders))

        response = client.get("/health")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "unreachable"}
