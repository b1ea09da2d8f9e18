"""
Rate Limiting (SlowAPI)

A single default limit, settings.RATE_LIMIT_DEFAULT (e.g. "100/minute"),
applies to every route per client address. Exceeding it returns 429 in the
standard error envelope.

Usage:
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from studyplan.config import settings
from studyplan.middleware.error_handling import create_error_response

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Key requests by client address.

    Behind a reverse proxy the first X-Forwarded-For hop is the client;
    otherwise the socket peer is used.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    client = get_client_identifier(request)
    logger.warning(f"Rate limit hit by {client} on {request.url.path}: {exc.detail}")
    return create_error_response(
        "rate_limit_exceeded",
        f"Too many requests ({exc.detail})",
        status_code=429,
    )


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """Attach the limiter, its 429 handler and the SlowAPI middleware."""
    if not enabled:
        logger.info("Rate limiting disabled")
        return

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(f"Rate limiting enabled: {settings.RATE_LIMIT_DEFAULT} per client")
