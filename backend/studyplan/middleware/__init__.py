"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling
"""

from studyplan.middleware.rate_limit import setup_rate_limiting, limiter
from studyplan.middleware.error_handling import (
    ConcurrentUpdateError,
    ErrorHandlingMiddleware,
    NotFoundError,
    ServiceError,
    handle_endpoint_errors,
    setup_error_handling,
)

__all__ = [
    "setup_rate_limiting",
    "limiter",
    "ConcurrentUpdateError",
    "ErrorHandlingMiddleware",
    "NotFoundError",
    "ServiceError",
    "handle_endpoint_errors",
    "setup_error_handling",
]
