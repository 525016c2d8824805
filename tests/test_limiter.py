"""Tests for per-channel fixed-window rate limiting."""

import threading
from unittest.mock import MagicMock, patch

import pytest
import redis

from notifyhub.config import Settings
from notifyhub.dispatch.limiter import FixedWindowRateLimiter, RedisRateLimiter, create_rate_limiter

from helpers import FakeClock


class TestFixedWindowRateLimiter:
    def test_admits_up_to_limit_then_rejects(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter({}, default_limit=3, window_seconds=60, clock=clock)
        assert [limiter.try_acquire("email") for _ in range(4)] == [True, True, True, False]

    def test_window_resets_after_duration(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter({}, default_limit=2, window_seconds=60, clock=clock)
        assert limiter.try_acquire("email")
        assert limiter.try_acquire("email")
        assert not limiter.try_acquire("email")

        clock.advance(59)
        assert not limiter.try_acquire("email")

        clock.advance(1)
        assert limiter.try_acquire("email")
        assert limiter.usage("email") == 1

    def test_window_starts_at_first_admission_after_rollover(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter({}, default_limit=1, window_seconds=10, clock=clock)
        assert limiter.try_acquire("push")
        clock.advance(25)
        assert limiter.try_acquire("push")
        clock.advance(9)
        assert not limiter.try_acquire("push")
        clock.advance(1)
        assert limiter.try_acquire("push")

    def test_channels_are_independent(self):
        limiter = FixedWindowRateLimiter({}, default_limit=1, window_seconds=60, clock=FakeClock())
        assert limiter.try_acquire("email")
        assert not limiter.try_acquire("email")
        assert limiter.try_acquire("sms")

    def test_per_channel_override(self):
        limiter = FixedWindowRateLimiter({"SMS": 1}, default_limit=5, window_seconds=60, clock=FakeClock())
        assert limiter.limit_for("sms") == 1
        assert limiter.limit_for("email") == 5
        assert limiter.try_acquire("sms")
        assert not limiter.try_acquire("SMS")

    def test_usage_of_unseen_channel_is_zero(self):
        limiter = FixedWindowRateLimiter({}, default_limit=5, window_seconds=60, clock=FakeClock())
        assert limiter.usage("fax") == 0
        assert limiter.try_acquire("fax")
        assert limiter.usage("fax") == 1

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter({}, default_limit=0, window_seconds=60)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter({}, default_limit=1, window_seconds=0)

    def test_concurrent_acquire_never_over_admits(self):
        limit = 25
        limiter = FixedWindowRateLimiter({}, default_limit=limit, window_seconds=3600)
        start = threading.Barrier(50)
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker():
            start.wait()
            for _ in range(4):
                admitted = limiter.try_acquire("email")
                with results_lock:
                    results.append(admitted)

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 200
        assert sum(results) == limit
        assert limiter.usage("email") == limit


class TestRedisRateLimiter:
    def _limiter(self, count, limit=3):
        client = MagicMock()
        client.pipeline.return_value.execute.return_value = [True, count]
        return RedisRateLimiter(client, {}, default_limit=limit, window_seconds=60), client

    def test_admits_while_count_within_limit(self):
        limiter, client = self._limiter(count=3)
        assert limiter.try_acquire("Email") is True
        pipe = client.pipeline.return_value
        pipe.set.assert_called_once_with("notifyhub:ratelimit:email", 0, nx=True, px=60_000)
        pipe.incr.assert_called_once_with("notifyhub:ratelimit:email")

    def test_rejects_over_limit(self):
        limiter, _ = self._limiter(count=4)
        assert limiter.try_acquire("email") is False

    def test_fails_open_when_redis_errors(self):
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
        limiter = RedisRateLimiter(client, {}, default_limit=1, window_seconds=60)
        assert limiter.try_acquire("email") is True

    def test_fails_closed_when_configured(self):
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
        limiter = RedisRateLimiter(client, {}, default_limit=1, window_seconds=60, fail_open=False)
        assert limiter.try_acquire("email") is False


class TestCreateRateLimiter:
    def test_memory_backend_by_default(self):
        limiter = create_rate_limiter(Settings(_env_file=None, rate_limits={"sms": 2}))
        assert isinstance(limiter, FixedWindowRateLimiter)
        assert limiter.limit_for("sms") == 2

    def test_redis_backend_when_configured(self):
        cfg = Settings(_env_file=None, rate_limit_backend="redis", redis_url="redis://localhost:6379/0")
        with patch("notifyhub.dispatch.limiter.redis.from_url") as from_url:
            limiter = create_rate_limiter(cfg)
        assert isinstance(limiter, RedisRateLimiter)
        from_url.return_value.ping.assert_called_once()
        assert limiter.fail_open is True

    def test_redis_backend_honours_fail_closed_setting(self):
        cfg = Settings(
            _env_file=None, rate_limit_backend="redis", redis_url="redis://localhost:6379/0", rate_limit_fail_open=False,
        )
        with patch("notifyhub.dispatch.limiter.redis.from_url"):
            limiter = create_rate_limiter(cfg)
        assert limiter.fail_open is False

    def test_falls_back_when_redis_unreachable(self):
        cfg = Settings(_env_file=None, rate_limit_backend="redis", redis_url="redis://localhost:6379/0")
        with patch("notifyhub.dispatch.limiter.redis.from_url") as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
            limiter = create_rate_limiter(cfg)
        assert isinstance(limiter, FixedWindowRateLimiter)
