"""Handlers for the routes the payment provider sends the buyer back to."""

import html
import logging
from typing import Any, Dict, Mapping

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, PlainTextResponse

from .callback_log import CallbackRecorder, request_metadata, utc_timestamp
from .config import Settings
from .errors import LoggingError
from .gateways.base import GatewayBase

logger = logging.getLogger(__name__)

SUCCESS_HTML = "<h1>Payment Successful!</h1><p>Your payment has been processed successfully.</p>"
PROCESSING_HTML = "<h1>Payment processing.</h1><p>We'll update you when payment is received.</p>"
ERROR_HTML = "<h1>Error</h1><p>An unexpected error occurred while processing your payment.</p>"


def failure_html(status: str) -> str:
    return f"<h1>Payment failed.</h1><p>Status: {html.escape(str(status))}</p>"


class CallbackHandler:
    """Records success, cancel and redirect callbacks.

    Every call appends a base request record first, then, when an id is
    present, a second record enriched with gateway state. There is no
    deduplication by id.
    """

    def __init__(
        self,
        gateway: GatewayBase,
        recorders: Mapping[str, CallbackRecorder],
        settings: Settings,
    ):
        self.gateway = gateway
        self.recorders = recorders
        self.settings = settings

    async def _append(self, route: str, event: Dict[str, Any]) -> None:
        await run_in_threadpool(self.recorders[route].record, event)

    async def _append_detail(self, route: str, event: Dict[str, Any]) -> None:
        try:
            await self._append(route, event)
        except LoggingError:
            logger.error(f"Failed to write {route} details to log", exc_info=True)

    async def success(self, request: Request) -> PlainTextResponse:
        return await self._session_callback("success", request)

    async def cancel(self, request: Request) -> PlainTextResponse:
        return await self._session_callback("cancel", request)

    async def _session_callback(self, route: str, request: Request) -> PlainTextResponse:
        session_id = request.query_params.get("session_id")
        try:
            await self._append(route, await request_metadata(request))

            if not session_id:
                return PlainTextResponse(f"Payment {route} recorded (no session_id provided)")

            session = await run_in_threadpool(self.gateway.retrieve_session, session_id)
            line_items = await run_in_threadpool(self.gateway.list_line_items, session_id)

            details = {
                "logType": f"payment_{route}",
                "timestamp": utc_timestamp(),
                "session": session.model_dump(exclude={"payment_intent"}),
                "payment_intent": session.payment_intent.model_dump() if session.payment_intent else None,
                "line_items": [item.model_dump() for item in line_items],
            }
            await self._append_detail(route, details)

            logger.info(f"Recorded payment {route} for session {session_id}")
            return PlainTextResponse(f"Payment {route} recorded")
        except Exception:
            logger.exception(f"Unexpected error handling {route} route")
            return PlainTextResponse(f"Error recording payment {route}", status_code=500)

    async def redirect(self, request: Request) -> HTMLResponse:
        payment_intent_id = request.query_params.get("payment_intent")
        redirect_status = request.query_params.get("redirect_status")
        try:
            await self._append("redirect", await request_metadata(request, include_body=False))

            if not payment_intent_id:
                logger.info("No payment_intent ID in query for /redirect")
                return HTMLResponse(self._missing_payment_html())

            intent = await run_in_threadpool(self.gateway.retrieve_payment_intent, payment_intent_id)
            await self._append_detail("redirect", {
                "logType": "payment_redirect",
                "timestamp": utc_timestamp(),
                "redirect_status": redirect_status,
                "payment_intent_status": intent.status,
                "payment_intent": intent.model_dump(),
            })
        except Exception as e:
            logger.exception("Unexpected error handling redirect route")
            await self._append_detail("redirect", {
                "logType": "error",
                "timestamp": utc_timestamp(),
                "error": str(e),
            })
            return HTMLResponse(ERROR_HTML, status_code=500)

        if intent.status == "succeeded":
            return HTMLResponse(SUCCESS_HTML)
        if intent.status == "processing":
            return HTMLResponse(PROCESSING_HTML)
        return HTMLResponse(failure_html(intent.status), status_code=400)

    def _missing_payment_html(self) -> str:
        body = "<h1>Payment status unknown.</h1><p>Missing payment information.</p>"
        if self.settings.frontend_url:
            link = f"{self.settings.frontend_url}/payment-status?status=error"
            body += f'<p><a href="{html.escape(link)}">Return to the store</a></p>'
        return body
