"""Response hardening for a JSON-only API that hands out bearer tokens."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

# No HTML is ever served, so nothing may be framed, embedded or cached
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds ``SECURITY_HEADERS`` to every response, and HSTS over https.

    X-Forwarded-Proto is believed only from ``trusted_proxies``, the same
    rule client-IP resolution follows.
    """

    def __init__(self, app: ASGIApp, trusted_proxies: set[str] | None = None) -> None:
        super().__init__(app)
        self.trusted_proxies = trusted_proxies or set()

    def _is_https(self, request: Request) -> bool:
        if request.url.scheme == "https":
            return True
        peer = request.client.host if request.client else None
        if peer in self.trusted_proxies:
            return request.headers.get("x-forwarded-proto", "").lower() == "https"
        return False

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if self._is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
