"""Middleware module for the gatekeeper."""

from gatekeeper.middleware.rate_limit import RateLimitMiddleware
from gatekeeper.middleware.rate_limit_cleanup import rate_limit_cleanup_loop
from gatekeeper.middleware.request_logging import RequestLoggingMiddleware
from gatekeeper.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "rate_limit_cleanup_loop",
]
