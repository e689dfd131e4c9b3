"""Fixed-window rate limiting middleware for the token and webhook endpoints."""

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from gatekeeper.core.config import settings
from gatekeeper.core.request_utils import get_client_ip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Allow ``max_requests`` per client IP in each ``window_seconds`` window."""

    path: str
    window_seconds: float
    max_requests: int
    message: str

    def matches(self, path: str) -> bool:
        # Segment-boundary match so /auth/token does not cover /auth/tokens
        return path == self.path or path.startswith(self.path + "/")


@dataclass
class RateLimitBucket:
    """Request count for one client+rule inside the current window."""

    window_start: float
    count: int = 0


def default_rules() -> list[RateLimitRule]:
    """Rules built from settings: token issuance and webhook relay."""
    return [
        RateLimitRule(
            path="/auth/token",
            window_seconds=settings.auth_rate_limit_window_ms / 1000,
            max_requests=settings.auth_rate_limit_max,
            message="Too many authentication requests, please try again later",
        ),
        RateLimitRule(
            path="/webhook",
            window_seconds=settings.rate_limit_window_ms / 1000,
            max_requests=settings.rate_limit_max,
            message="Too many webhook requests, please try again later",
        ),
    ]


class RateLimiter:
    """In-memory fixed-window rate limiter keyed by client IP and rule.

    Single-process only; counts are not shared between workers.
    """

    _instance: Optional["RateLimiter"] = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(self, rules: list[RateLimitRule] | None = None) -> None:
        self._buckets: dict[tuple[str, str], RateLimitBucket] = {}
        self._lock = asyncio.Lock()
        self._rules: list[RateLimitRule] = rules if rules is not None else default_rules()

    @classmethod
    def get_instance(cls) -> "RateLimiter":
        """Get the singleton instance (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @property
    def rules(self) -> list[RateLimitRule]:
        return list(self._rules)

    def set_rules(self, rules: list[RateLimitRule]) -> None:
        self._rules = list(rules)

    def get_rule_for_path(self, path: str) -> RateLimitRule | None:
        """Get the rule that applies to ``path``, or None if unlimited."""
        for rule in self._rules:
            if rule.matches(path):
                return rule
        return None

    async def check_rate_limit(
        self,
        client_ip: str,
        rule: RateLimitRule,
    ) -> tuple[bool, dict[str, str]]:
        """Count a request against ``rule`` and report whether it is allowed.

        Returns:
            Tuple of (is_allowed, headers_dict)
        """
        bucket_key = (client_ip, rule.path)

        async with self._lock:
            now = time.monotonic()
            bucket = self._buckets.get(bucket_key)
            if bucket is None or now - bucket.window_start >= rule.window_seconds:
                bucket = RateLimitBucket(window_start=now)
                self._buckets[bucket_key] = bucket

            reset_seconds = max(1, math.ceil(bucket.window_start + rule.window_seconds - now))
            headers = {
                "RateLimit-Limit": str(rule.max_requests),
                "RateLimit-Reset": str(reset_seconds),
            }

            if bucket.count >= rule.max_requests:
                headers["RateLimit-Remaining"] = "0"
                headers["Retry-After"] = str(reset_seconds)
                return False, headers

            bucket.count += 1
            headers["RateLimit-Remaining"] = str(rule.max_requests - bucket.count)
            return True, headers

    async def get_stats(self) -> dict[str, dict]:
        """Get current rate limit statistics."""
        async with self._lock:
            return {
                f"{ip}:{path}": {"count": bucket.count}
                for (ip, path), bucket in self._buckets.items()
            }

    async def reset(self, client_ip: str | None = None) -> None:
        """Reset rate limit counters."""
        async with self._lock:
            if client_ip:
                keys_to_remove = [k for k in self._buckets if k[0] == client_ip]
                for key in keys_to_remove:
                    del self._buckets[key]
            else:
                self._buckets.clear()

    async def cleanup_inactive_buckets(self) -> int:
        """Remove buckets whose window has ended.

        A fresh bucket is created on the client's next request, so dropping a
        finished window loses nothing and bounds memory for abandoned IPs.

        Returns:
            Number of buckets removed
        """
        windows = {rule.path: rule.window_seconds for rule in self._rules}
        longest = max(windows.values(), default=0)
        async with self._lock:
            now = time.monotonic()
            keys_to_remove = []
            for key, bucket in self._buckets.items():
                _, rule_path = key
                window = windows.get(rule_path, longest)
                if now - bucket.window_start >= window:
                    keys_to_remove.append(key)

            for key in keys_to_remove:
                del self._buckets[key]

            return len(keys_to_remove)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies per-IP fixed-window limits to the paths that have a rule.

    Requests to paths without a rule, and CORS preflights, pass untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        enabled: bool = True,
        trusted_proxies: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.enabled = enabled
        self.trusted_proxies = trusted_proxies or set()
        self.rate_limiter = RateLimiter.get_instance()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request with rate limiting."""
        if not self.enabled or request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        rule = self.rate_limiter.get_rule_for_path(path)
        if rule is None:
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxies)
        is_allowed, headers = await self.rate_limiter.check_rate_limit(client_ip, rule)

        if not is_allowed:
            logger.warning(f"Rate limit exceeded for {client_ip} on {path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": rule.message},
                headers=headers,
            )

        response = await call_next(request)

        for key, value in headers.items():
            response.headers[key] = value

        return response


def get_rate_limiter() -> RateLimiter:
    """Get the rate limiter singleton for stats/management."""
    return RateLimiter.get_instance()
