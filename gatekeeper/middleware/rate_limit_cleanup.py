"""Background eviction of finished rate-limit windows."""

import asyncio
import logging

from gatekeeper.middleware.rate_limit import RateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)

MIN_CLEANUP_INTERVAL_SECONDS = 60.0


def cleanup_interval(rate_limiter: RateLimiter) -> float:
    """Sweep once per shortest window, but not more than once a minute."""
    windows = [rule.window_seconds for rule in rate_limiter.rules]
    return max(MIN_CLEANUP_INTERVAL_SECONDS, min(windows, default=MIN_CLEANUP_INTERVAL_SECONDS))


async def rate_limit_cleanup_loop(
    interval_seconds: float | None = None,
    rate_limiter: RateLimiter | None = None,
) -> None:
    """Drop buckets whose window has ended until cancelled.

    Abandoned client IPs would otherwise keep a bucket forever.
    """
    rate_limiter = rate_limiter or get_rate_limiter()
    interval = interval_seconds or cleanup_interval(rate_limiter)
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await rate_limiter.cleanup_inactive_buckets()
        except Exception:
            logger.exception("Rate limiter cleanup failed")
            continue
        if removed:
            logger.debug(f"Rate limiter cleanup: removed {removed} finished windows")
