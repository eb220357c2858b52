"""
Rate limiting configuration and setup.

Uses slowapi to enforce per-endpoint rate limits.
Order entry and money movement routes carry the stricter
ORDER_RATE_LIMIT on top of the default limit.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

DEFAULT_RATE_LIMIT = settings.rate_limit_default
ORDER_RATE_LIMIT = settings.rate_limit_orders

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_RATE_LIMIT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Handle rate limit exceeded errors with a clean JSON response.

    Args:
        _request: The incoming HTTP request.
        exc: The rate limit exceeded exception.

    Returns:
        A 429 JSON response with a clear error message.
    """
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
