"""Rate limiting helpers for the API."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)


def build_limiter() -> Limiter:
    """Create a limiter keyed by client address.

    Each app gets its own limiter so counters are never shared between apps.
    """
    return Limiter(key_func=get_remote_address)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": f"Rate limit exceeded: {exc.detail}"},
    )
