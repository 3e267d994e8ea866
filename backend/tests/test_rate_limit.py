"""
Tests for the in-memory rate limiter.

Tests: RateLimiter sliding window, cleanup, the rate_limit dependency.
"""
import pytest
from unittest.mock import MagicMock

from domain.errors import RateLimitError
from middleware.rate_limit import RateLimiter, limiter, rate_limit


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Tests for the RateLimiter class."""

    @pytest.mark.unit
    def test_allows_requests_under_limit(self):
        rl = RateLimiter()
        for _ in range(5):
            assert rl.check("testkey", max_requests=5, window_seconds=60) is True

    @pytest.mark.unit
    def test_blocks_requests_over_limit(self):
        rl = RateLimiter()
        for _ in range(3):
            rl.check("testkey", max_requests=3, window_seconds=60)
        assert rl.check("testkey", max_requests=3, window_seconds=60) is False

    @pytest.mark.unit
    def test_different_keys_independent(self):
        rl = RateLimiter()
        for _ in range(3):
            rl.check("key1", max_requests=3, window_seconds=60)
        assert rl.check("key1", max_requests=3, window_seconds=60) is False
        assert rl.check("key2", max_requests=3, window_seconds=60) is True

    @pytest.mark.unit
    def test_window_expiry(self):
        """Requests are allowed again once the window slides past them."""
        clock = FakeClock()
        rl = RateLimiter(clock=clock)
        for _ in range(2):
            rl.check("testkey", max_requests=2, window_seconds=10)
        assert rl.check("testkey", max_requests=2, window_seconds=10) is False

        clock.now += 10.5
        assert rl.check("testkey", max_requests=2, window_seconds=10) is True

    @pytest.mark.unit
    def test_rejected_requests_not_recorded(self):
        clock = FakeClock()
        rl = RateLimiter(clock=clock)
        rl.check("k", max_requests=1, window_seconds=10)
        clock.now += 5
        assert rl.check("k", max_requests=1, window_seconds=10) is False
        clock.now += 5.5
        # only the first request counted, and it has now expired
        assert rl.check("k", max_requests=1, window_seconds=10) is True

    @pytest.mark.unit
    def test_remaining_count(self):
        rl = RateLimiter()
        assert rl.remaining("testkey", max_requests=5, window_seconds=60) == 5
        rl.check("testkey", max_requests=5, window_seconds=60)
        assert rl.remaining("testkey", max_requests=5, window_seconds=60) == 4

    @pytest.mark.unit
    def test_remaining_at_zero(self):
        rl = RateLimiter()
        for _ in range(6):
            rl.check("testkey", max_requests=5, window_seconds=60)
        assert rl.remaining("testkey", max_requests=5, window_seconds=60) == 0

    @pytest.mark.unit
    def test_cleanup_removes_old_entries(self):
        clock = FakeClock()
        rl = RateLimiter(clock=clock)
        rl._requests["testkey"] = [clock.now - 120, clock.now - 119, clock.now - 118]
        rl._cleanup("testkey", 60)
        assert len(rl._requests["testkey"]) == 0


class TestRateLimitDependency:

    @staticmethod
    def _request(host="10.0.0.1", path="/orders"):
        req = MagicMock()
        req.client.host = host
        req.url.path = path
        req.method = "POST"
        return req

    @pytest.mark.unit
    async def test_raises_with_headers_when_exceeded(self):
        check = rate_limit(max_requests=2, window_seconds=30)
        await check(self._request())
        await check(self._request())

        with pytest.raises(RateLimitError) as exc_info:
            await check(self._request())

        err = exc_info.value
        assert err.status_code == 429
        assert err.headers["Retry-After"] == "30"
        assert err.headers["X-RateLimit-Limit"] == "2"
        assert err.headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.unit
    async def test_keyed_by_client_ip(self):
        check = rate_limit(max_requests=1, window_seconds=30)
        await check(self._request(host="10.0.0.1"))
        await check(self._request(host="10.0.0.2"))
        with pytest.raises(RateLimitError):
            await check(self._request(host="10.0.0.1"))

    @pytest.mark.unit
    def test_global_limiter_reset(self):
        limiter.check("x", max_requests=1, window_seconds=60)
        limiter.reset()
        assert limiter.remaining("x", max_requests=1, window_seconds=60) == 1
