import logging
from typing import Any, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded

from .callback_log import CallbackRecorder, file_recorders
from .callbacks import CallbackHandler
from .catalog import Catalog, default_catalog
from .config import Settings
from .errors import CheckoutError, EmptyCartError, GatewayError, InvalidAmountError, ValidationError
from .gateways import GatewayBase, SimulatorGateway, StripeGateway
from .limits import build_limiter, rate_limit_handler
from .services import CheckoutService

logger = logging.getLogger(__name__)


class CreateCheckoutSessionBody(BaseModel):
    # Validated by the checkout builder so bad carts map to 400, not 422
    cart: Any = None


class CreatePaymentIntentBody(BaseModel):
    amount: Any = None


def build_gateway(settings: Settings) -> GatewayBase:
    if settings.gateway == "simulator":
        return SimulatorGateway()
    return StripeGateway(api_key=settings.stripe_secret_key)


def create_app(
    settings: Optional[Settings] = None,
    catalog: Optional[Catalog] = None,
    gateway: Optional[GatewayBase] = None,
    recorders: Optional[Mapping[str, CallbackRecorder]] = None,
) -> FastAPI:
    """Build the storefront API.

    Everything not passed in is built from ``settings`` (itself read from the
    environment when omitted): the demo catalog, the configured gateway and
    one ``.log`` file per callback route.
    """
    settings = settings or Settings.from_env()
    catalog = catalog if catalog is not None else default_catalog()
    gateway = gateway if gateway is not None else build_gateway(settings)
    recorders = recorders if recorders is not None else file_recorders(settings.log_dir)

    service = CheckoutService(catalog, gateway, settings)
    callbacks = CallbackHandler(gateway, recorders, settings)
    limiter = build_limiter()

    app = FastAPI(title="Storefront Checkout API")
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.gateway = gateway
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    # Unparseable or non-object bodies are answered like an empty submission
    body_errors = {
        "/create-checkout-session": EmptyCartError().message,
        "/create-payment-intent": InvalidAmountError(None).message,
    }

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = body_errors.get(request.url.path, "Invalid request")
        logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    @app.get("/products")
    async def list_products():
        products = [p.model_dump() for p in catalog.list_products()]
        return {"success": True, "message": "Products fetched successfully", "products": products}

    @app.post("/create-checkout-session")
    @limiter.limit(settings.rate_limit)
    async def create_checkout_session(request: Request, body: Optional[CreateCheckoutSessionBody] = None):
        try:
            session = await service.create_checkout_session(body.cart if body else None)
        except ValidationError as e:
            logger.info(f"Rejected checkout: {e.message}")
            return JSONResponse(status_code=400, content={"success": False, "message": e.message})
        except GatewayError as e:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Error creating checkout session", "error": e.message},
            )
        return {"success": True, "message": "Session initiated", "url": session.url}

    @app.post("/create-payment-intent")
    @limiter.limit(settings.rate_limit)
    async def create_payment_intent(request: Request, body: Optional[CreatePaymentIntentBody] = None):
        try:
            intent = await service.create_payment_intent(body.amount if body else None)
        except ValidationError as e:
            return JSONResponse(status_code=400, content={"success": False, "message": e.message})
        except GatewayError as e:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Error creating payment intent", "error": e.message},
            )
        return {"success": True, "message": "Intent created", "clientSecret": intent.client_secret}

    @app.get("/success")
    async def payment_success(request: Request):
        return await callbacks.success(request)

    @app.get("/cancel")
    async def payment_cancel(request: Request):
        return await callbacks.cancel(request)

    @app.get("/redirect")
    async def payment_redirect(request: Request):
        return await callbacks.redirect(request)

    @app.get("/config")
    async def client_config():
        return {"publishableKey": settings.stripe_publishable_key}

    @app.get("/health")
    async def health():
        return gateway.health_check()

    logger.info(f"Storefront API configured with {settings.gateway} gateway and {len(catalog)} products")
    return app
