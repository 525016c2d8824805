"""Per-channel fixed-window rate limiting.

Provides FixedWindowRateLimiter (in-process, per-channel locks) and
RedisRateLimiter (shared across workers), chosen by create_rate_limiter().
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

import redis

from ..config import Settings

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    """Admission check for one dispatch on a channel."""

    def try_acquire(self, channel: str) -> bool: ...


class _ChannelLimits:
    def __init__(self, limits: Mapping[str, int], default_limit: int, window_seconds: float) -> None:
        if default_limit <= 0:
            raise ValueError("default_limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._limits = {k.strip().lower(): v for k, v in limits.items()}
        self._default_limit = default_limit
        self.window_seconds = window_seconds

    def limit_for(self, channel: str) -> int:
        return self._limits.get(channel.strip().lower(), self._default_limit)


@dataclass
class _Window:
    start: float
    count: int = 0


class FixedWindowRateLimiter(_ChannelLimits):
    """In-process limiter. Check-and-increment runs under the channel's own lock."""

    def __init__(
        self,
        limits: Mapping[str, int],
        default_limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(limits, default_limit, window_seconds)
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, channel: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(channel)
            if lock is None:
                lock = self._locks[channel] = threading.Lock()
            return lock

    def try_acquire(self, channel: str) -> bool:
        key = channel.strip().lower()
        limit = self.limit_for(key)
        with self._lock_for(key):
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now >= window.start + self.window_seconds:
                window = self._windows[key] = _Window(start=now)
            if window.count < limit:
                window.count += 1
                return True
        logger.warning("Rate limit reached for channel=%s (limit=%d per %.0fs)", key, limit, self.window_seconds)
        return False

    def usage(self, channel: str) -> int:
        """Admissions counted in the channel's current window (0 if none yet)."""
        key = channel.strip().lower()
        with self._lock_for(key):
            window = self._windows.get(key)
            if window is None or self._clock() >= window.start + self.window_seconds:
                return 0
            return window.count


class RedisRateLimiter(_ChannelLimits):
    """Limiter shared by every worker through one Redis counter per channel.

    The counter is created with the window as its expiry, so the window starts
    at the first admission after the previous one expired.

    When Redis errors mid-flight the limiter fails open by default: the dispatch
    is admitted and the per-window cap is not enforced until Redis is back.
    With ``fail_open=False`` such dispatches are rejected as rate limited.
    """

    def __init__(
        self,
        client: redis.Redis,
        limits: Mapping[str, int],
        default_limit: int,
        window_seconds: float,
        prefix: str = "notifyhub:ratelimit",
        fail_open: bool = True,
    ) -> None:
        super().__init__(limits, default_limit, window_seconds)
        self._client = client
        self._prefix = prefix
        self.fail_open = fail_open

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisRateLimiter":
        client = redis.from_url(redis_url, decode_responses=True)
        client.ping()
        return cls(client, **kwargs)

    def try_acquire(self, channel: str) -> bool:
        key = channel.strip().lower()
        limit = self.limit_for(key)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(f"{self._prefix}:{key}", 0, nx=True, px=int(self.window_seconds * 1000))
            pipe.incr(f"{self._prefix}:{key}")
            _, count = pipe.execute()
        except redis.RedisError:
            logger.warning(
                "Rate limiter backend unavailable, %s dispatch on channel=%s",
                "admitting" if self.fail_open else "rejecting",
                key,
                exc_info=True,
            )
            return self.fail_open
        if int(count) > limit:
            logger.warning("Rate limit reached for channel=%s (limit=%d per %.0fs)", key, limit, self.window_seconds)
            return False
        return True


def create_rate_limiter(cfg: Settings) -> RateLimiter:
    """Factory: Redis-backed limiter when configured and reachable, in-process otherwise."""
    options = {
        "limits": cfg.rate_limits,
        "default_limit": cfg.rate_limit_default,
        "window_seconds": cfg.rate_limit_window_seconds,
    }
    if cfg.rate_limit_backend == "redis" and cfg.redis_url:
        try:
            return RedisRateLimiter.from_url(cfg.redis_url, fail_open=cfg.rate_limit_fail_open, **options)
        except redis.RedisError:
            logger.warning("Redis unreachable at startup, falling back to in-process rate limiting")
    return FixedWindowRateLimiter(**options)
