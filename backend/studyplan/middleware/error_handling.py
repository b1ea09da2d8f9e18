"""
Error Handling

Every failure leaves the API in the same JSON envelope:

    {"error": "not_found", "message": "Deck 4 not found",
     "error_id": "1f3a9c2e", "details": null, "timestamp": "..."}

error_id also appears in the log line, so a client report can be matched
to the server log.

Sources of errors and where they are turned into responses:
    ServiceError raised by a service   -> service_error_handler (status from the class)
    HTTPException                      -> FastAPI's own handler
    anything else                      -> ErrorHandlingMiddleware, sanitized 500

Usage:
    from studyplan.middleware.error_handling import NotFoundError

    raise NotFoundError(f"Flashcard {card_id} not found")
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _new_error_id() -> str:
    return uuid4().hex[:8]


def _envelope(
    error_code: str,
    message: str,
    error_id: str,
    details: Optional[dict] = None,
) -> dict[str, Any]:
    return {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# =============================================================================
# Service Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base class for errors a service raises on purpose.

    Subclasses pin the HTTP status and error code; ``details`` is echoed to
    the client, so keep it to identifiers.
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.status_code
        self.error_code = error_code or self.error_code
        self.details = details


class NotFoundError(ServiceError):
    """A deck, card, subject or session id that does not exist."""

    status_code = 404
    error_code = "not_found"


class ConcurrentUpdateError(ServiceError):
    """
    The row changed between read and write (stale ``version``).

    Clients reload the card and submit the review again.
    """

    status_code = 409
    error_code = "concurrent_update"


# =============================================================================
# Handlers
# =============================================================================


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    error_id = _new_error_id()
    logger.warning(
        f"[{error_id}] {exc.error_code} on {request.method} {request.url.path}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.error_code, exc.message, error_id, exc.details),
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for exceptions no handler claimed.

    The client gets a generic 500; the traceback goes to the log, and into
    the response only when ``debug`` is on.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            error_id = _new_error_id()
            trace = traceback.format_exc()
            logger.error(
                f"[{error_id}] Unhandled {type(e).__name__} on "
                f"{request.method} {request.url.path}: {e}",
                extra={"error_id": error_id, "traceback": trace},
            )

            details = None
            if self.debug:
                details = {"exception": type(e).__name__, "message": str(e), "traceback": trace}

            return JSONResponse(
                status_code=500,
                content=_envelope(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """Register the ServiceError handler and the catch-all middleware."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling enabled (debug={debug})")


# =============================================================================
# Helpers
# =============================================================================


def handle_endpoint_errors(operation: str) -> Callable[[F], F]:
    """
    Turn unexpected failures inside a route into a logged HTTP 500.

    HTTPException and ServiceError pass through untouched so their status
    codes survive.

    Args:
        operation: Short description used in the log line and error detail
            (e.g., "Rate card").
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {type(e).__name__}: {e}")
                raise HTTPException(status_code=500, detail=f"{operation} failed")

        return wrapper

    return decorator


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: Optional[dict] = None,
) -> JSONResponse:
    """Build an envelope response outside the handlers (e.g. the 429 handler)."""
    return JSONResponse(
        status_code=status_code,
        content=_envelope(error_code, message, _new_error_id(), details),
    )
