"""
Secure HTTP headers middleware.

Every response carries the baseline security headers. Balances and
ledger entries must never be served from a cache, so caching is
disabled for all API responses. HSTS is only sent over HTTPS.

No business logic. Pure cross-cutting concern.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security and no-cache headers to every response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers.update(SECURE_HEADERS)
        response.headers.update(NO_CACHE_HEADERS)
        if request.url.scheme == "https":
            response.headers[HSTS_HEADER[0]] = HSTS_HEADER[1]
        return response
