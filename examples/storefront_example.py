"""
Simple storefront walk-through against an in-process API backed by the simulator
gateway. Swap SimulatorGateway for StripeGateway (with STRIPE_SECRET_KEY set) to
get a real hosted checkout URL.
"""
from fastapi.testclient import TestClient
from checkout_sdk.api import create_app
from checkout_sdk.callback_log import MemoryRecorder
from checkout_sdk.config import Settings
from checkout_sdk.gateways import SimulatorGateway
from checkout_sdk.storefront import Storefront

def run():
    gateway = SimulatorGateway()
    recorders = {route: MemoryRecorder() for route in ("success", "cancel", "redirect")}
    app = create_app(Settings(gateway="simulator"), gateway=gateway, recorders=recorders)
    client = TestClient(app)

    store = Storefront(client)
    for product in store.load_products():
        print(f"{product.id}: {product.name} ${product.price}")

    store.add_to_cart(1)
    store.add_to_cart(1)
    store.add_to_cart(3)
    print("Total Price:", store.total)
    url = store.checkout()
    print("Redirect to:", url)

    # The provider sends the buyer back to /success once the payment completes
    session_id = url.rsplit("/", 1)[-1]
    gateway.complete_session(session_id, customer_email="buyer@example.com")
    print(client.get("/success", params={"session_id": session_id}).text)
    print("Logged:", recorders["success"].records[-1]["session"])

if __name__ == "__main__":
    run()
