"""Tests for the rate limiting middleware."""

import asyncio

import pytest

from gatekeeper.middleware.rate_limit import RateLimiter, RateLimitRule, default_rules
from gatekeeper.middleware.rate_limit_cleanup import cleanup_interval, rate_limit_cleanup_loop

from tests.conftest import bearer


def _rule(path="/limited", window_seconds=60.0, max_requests=3) -> RateLimitRule:
    return RateLimitRule(
        path=path,
        window_seconds=window_seconds,
        max_requests=max_requests,
        message="Slow down",
    )


class TestRateLimitRule:
    def test_matches_exact_path_and_subpaths(self):
        rule = _rule(path="/webhook")

        assert rule.matches("/webhook")
        assert rule.matches("/webhook/discord")

    def test_does_not_match_prefix_without_segment_boundary(self):
        rule = _rule(path="/auth/token")

        assert not rule.matches("/auth/tokens")
        assert not rule.matches("/auth/refresh")

    def test_default_rules(self):
        rules = {rule.path: rule for rule in default_rules()}

        assert rules["/auth/token"].max_requests == 10
        assert rules["/auth/token"].window_seconds == 900
        assert rules["/webhook"].max_requests == 100
        assert rules["/webhook"].window_seconds == 900


class TestRateLimiter:
    """Tests for the RateLimiter class."""

    @pytest.fixture
    def rate_limiter(self):
        return RateLimiter(rules=[_rule()])

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_denies(self, rate_limiter):
        rule = _rule()
        results = [(await rate_limiter.check_rate_limit("10.0.0.1", rule))[0] for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_headers(self, rate_limiter):
        rule = _rule()

        _, headers = await rate_limiter.check_rate_limit("10.0.0.1", rule)

        assert headers["RateLimit-Limit"] == "3"
        assert headers["RateLimit-Remaining"] == "2"
        assert 1 <= int(headers["RateLimit-Reset"]) <= 60
        assert "Retry-After" not in headers

    @pytest.mark.asyncio
    async def test_denied_request_carries_retry_after(self, rate_limiter):
        rule = _rule(max_requests=1)
        await rate_limiter.check_rate_limit("10.0.0.1", rule)

        allowed, headers = await rate_limiter.check_rate_limit("10.0.0.1", rule)

        assert allowed is False
        assert headers["RateLimit-Remaining"] == "0"
        assert headers["Retry-After"] == headers["RateLimit-Reset"]

    @pytest.mark.asyncio
    async def test_separate_buckets_per_ip(self, rate_limiter):
        rule = _rule(max_requests=1)

        allowed1, _ = await rate_limiter.check_rate_limit("10.0.0.1", rule)
        allowed2, _ = await rate_limiter.check_rate_limit("10.0.0.2", rule)

        assert allowed1 and allowed2
        stats = await rate_limiter.get_stats()
        assert "10.0.0.1:/limited" in stats
        assert "10.0.0.2:/limited" in stats

    @pytest.mark.asyncio
    async def test_window_resets(self, rate_limiter):
        rule = _rule(window_seconds=0.05, max_requests=1)
        await rate_limiter.check_rate_limit("10.0.0.1", rule)
        assert not (await rate_limiter.check_rate_limit("10.0.0.1", rule))[0]

        await asyncio.sleep(0.1)

        assert (await rate_limiter.check_rate_limit("10.0.0.1", rule))[0]

    @pytest.mark.asyncio
    async def test_reset_single_ip(self, rate_limiter):
        rule = _rule()
        await rate_limiter.check_rate_limit("10.0.0.1", rule)
        await rate_limiter.check_rate_limit("10.0.0.2", rule)

        await rate_limiter.reset("10.0.0.1")

        assert list(await rate_limiter.get_stats()) == ["10.0.0.2:/limited"]

    @pytest.mark.asyncio
    async def test_reset_matches_ip_exactly(self, rate_limiter):
        rule = _rule()
        await rate_limiter.check_rate_limit("2001:db8::1", rule)
        await rate_limiter.check_rate_limit("2001:db8::1:5", rule)

        await rate_limiter.reset("2001:db8::1")

        assert list(await rate_limiter.get_stats()) == ["2001:db8::1:5:/limited"]

    @pytest.mark.asyncio
    async def test_cleanup_removes_finished_windows(self):
        short = _rule(path="/short", window_seconds=0.01)
        long = _rule(path="/long", window_seconds=60)
        rate_limiter = RateLimiter(rules=[short, long])
        await rate_limiter.check_rate_limit("10.0.0.1", short)
        await rate_limiter.check_rate_limit("10.0.0.1", long)

        await asyncio.sleep(0.05)
        removed = await rate_limiter.cleanup_inactive_buckets()

        assert removed == 1
        assert list(await rate_limiter.get_stats()) == ["10.0.0.1:/long"]

    def test_get_rule_for_path(self, rate_limiter):
        assert rate_limiter.get_rule_for_path("/limited/x").path == "/limited"
        assert rate_limiter.get_rule_for_path("/health") is None


class TestRateLimitMiddleware:
    """Middleware behaviour through the application."""

    @pytest.fixture
    def tight_limits(self):
        limiter = RateLimiter.get_instance()
        limiter.set_rules(
            [
                RateLimitRule(
                    "/auth/token", 60, 2, "Too many authentication requests, please try again later"
                ),
                RateLimitRule(
                    "/webhook", 60, 1, "Too many webhook requests, please try again later"
                ),
            ]
        )
        return limiter

    def test_token_endpoint_limited(self, client, api_key_headers, tight_limits):
        for _ in range(2):
            response = client.post("/auth/token", json={"userId": "u"}, headers=api_key_headers)
            assert response.status_code == 200

        response = client.post("/auth/token", json={"userId": "u"}, headers=api_key_headers)

        assert response.status_code == 429
        assert response.json() == {
            "error": "Too many authentication requests, please try again later"
        }
        assert "Retry-After" in response.headers

    def test_allowed_response_has_headers(self, client, api_key_headers, tight_limits):
        response = client.post("/auth/token", json={"userId": "u"}, headers=api_key_headers)

        assert response.headers["RateLimit-Limit"] == "2"
        assert response.headers["RateLimit-Remaining"] == "1"

    def test_webhook_limited(self, client, tight_limits):
        client.post("/webhook/discord", json={"content": "hi"}, headers=bearer("nope"))

        response = client.post("/webhook/discord", json={"content": "hi"}, headers=bearer("nope"))

        assert response.status_code == 429
        assert response.json()["error"] == "Too many webhook requests, please try again later"

    def test_unlimited_paths_pass(self, client, tight_limits):
        for _ in range(5):
            response = client.get("/health")
            assert response.status_code == 200
            assert "RateLimit-Limit" not in response.headers

    def test_refresh_not_limited_by_token_rule(self, client, tight_limits):
        for _ in range(3):
            response = client.post("/auth/refresh", headers=bearer("nope"))
            assert response.status_code == 401


class TestCleanupLoop:
    def test_interval_follows_shortest_window(self):
        limiter = RateLimiter(
            rules=[_rule(window_seconds=900), _rule(path="/b", window_seconds=300)]
        )

        assert cleanup_interval(limiter) == 300

    def test_interval_has_a_floor(self):
        limiter = RateLimiter(rules=[_rule(window_seconds=1)])

        assert cleanup_interval(limiter) == 60

    @pytest.mark.asyncio
    async def test_loop_evicts_finished_windows_until_cancelled(self):
        rule = _rule(window_seconds=0.01)
        limiter = RateLimiter(rules=[rule])
        await limiter.check_rate_limit("10.0.0.1", rule)

        task = asyncio.create_task(rate_limit_cleanup_loop(0.02, limiter))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await limiter.get_stats() == {}
