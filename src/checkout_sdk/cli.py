#!/usr/bin/env python3
"""Command-line interface for the storefront checkout service.

Usage:
    python -m checkout_sdk.cli serve --port 3001
    python -m checkout_sdk.cli products --server-url http://localhost:3001
    python -m checkout_sdk.cli checkout --server-url http://localhost:3001 --item 1:2 --item 3:1
"""

import argparse
import os
import logging
import sys
from typing import List, Optional, Tuple

import httpx
import uvicorn

from .config import GATEWAYS, Settings
from .errors import CheckoutError
from .storefront import CheckoutFailed, Storefront

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_item(value: str) -> Tuple[int, int]:
    """Parse an ``ID:QTY`` cart entry.

    Raises:
        argparse.ArgumentTypeError: If the value is not two integers.
    """
    try:
        product_id, quantity = value.split(":", 1)
        return int(product_id), int(quantity)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected ID:QTY, got {value!r}")


def run_serve(host: str, port: Optional[int], gateway: Optional[str]) -> int:
    if gateway:
        os.environ["PAYMENT_GATEWAY"] = gateway
    settings = Settings.from_env()
    port = port or settings.port
    logger.info(f"Server is running on port {port}")
    uvicorn.run("checkout_sdk.api:create_app", factory=True, host=host, port=port)
    return 0


def run_products(server_url: str) -> int:
    with httpx.Client(base_url=server_url) as client:
        store = Storefront(client)
        products = store.load_products()
    if not products:
        print("No Products Found!!")
        return 1
    for product in products:
        print(f"{product.id}\t{product.name}\t${product.price}")
    return 0


def run_checkout(server_url: str, items: List[Tuple[int, int]]) -> int:
    with httpx.Client(base_url=server_url) as client:
        store = Storefront(client)
        store.load_products()
        try:
            for product_id, quantity in items:
                store.update_cart(product_id, quantity)
            print(f"Total Price: {store.total}")
            url = store.checkout()
        except (CheckoutError, CheckoutFailed) as e:
            logger.error(f"Checkout failed: {e}")
            return 1
    print(url)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Storefront checkout service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: BE_PORT or 3001)")
    serve.add_argument("--gateway", choices=GATEWAYS, default=None, help="Payment gateway to use")

    products = subparsers.add_parser("products", help="List the catalog")
    products.add_argument("--server-url", required=True, help="API base URL")

    checkout = subparsers.add_parser("checkout", help="Start a hosted checkout and print its URL")
    checkout.add_argument("--server-url", required=True, help="API base URL")
    checkout.add_argument(
        "--item", dest="items", type=parse_item, action="append", required=True,
        help="Cart entry as ID:QTY (repeatable)",
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        return run_serve(args.host, args.port, args.gateway)
    if args.command == "products":
        return run_products(args.server_url)
    if args.command == "checkout":
        return run_checkout(args.server_url, args.items)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
