"""Per-client HTTP rate limiting (slowapi).

This guards the API against a single noisy caller and is independent of the
per-channel dispatch quota in ``dispatch.limiter``. When the channel limiter
runs on Redis, the HTTP limiter shares the same server and falls back to
memory if it goes away.
"""

from fastapi import Request
from slowapi import Limiter

from .config import settings


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _storage_uri() -> str:
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        return settings.redis_url
    return "memory://"


limiter = Limiter(
    key_func=client_key,
    storage_uri=_storage_uri(),
    in_memory_fallback_enabled=True,
)
