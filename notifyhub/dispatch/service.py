"""Dispatcher wiring from settings."""

import logging
from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from ..audit.service import SqlAuditLog
from ..channels.registry import ChannelRegistry
from ..channels.senders import NotificationSender, default_senders
from ..config import Settings
from ..exceptions import ConfigurationError
from ..templates.resolver import TemplateResolver
from ..templates.service import SqlTemplateStore
from .dispatcher import NotificationDispatcher
from .limiter import RateLimiter, create_rate_limiter
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


def build_registry(cfg: Settings, senders: Iterable[NotificationSender] | None = None) -> ChannelRegistry:
    """Registry of the senders for ``cfg.enabled_channels``. Raises on duplicates or missing senders."""
    available = list(senders) if senders is not None else default_senders()
    registry = ChannelRegistry(s for s in available if s.channel.lower() in cfg.enabled_channels)
    missing = [c for c in cfg.enabled_channels if c not in registry]
    if missing:
        raise ConfigurationError(f"No sender implementation for enabled channel(s): {', '.join(missing)}")
    return registry


def build_dispatcher(
    cfg: Settings,
    session_factory: Callable[[], Session],
    senders: Iterable[NotificationSender] | None = None,
    limiter: RateLimiter | None = None,
    retry_policy: RetryPolicy | None = None,
) -> NotificationDispatcher:
    registry = build_registry(cfg, senders)
    dispatcher = NotificationDispatcher(
        registry=registry,
        resolver=TemplateResolver(SqlTemplateStore(session_factory)),
        limiter=limiter if limiter is not None else create_rate_limiter(cfg),
        retry_policy=retry_policy if retry_policy is not None else RetryPolicy.from_settings(cfg),
        audit_log=SqlAuditLog(session_factory),
        default_channel=cfg.default_channel,
    )
    logger.info(
        "Dispatcher ready: default_channel=%s, limits=%s per %.0fs, max_attempts=%d",
        dispatcher.default_channel,
        ", ".join(f"{c}:{cfg.rate_limit_for(c)}" for c in registry.channels),
        cfg.rate_limit_window_seconds,
        cfg.retry_max_attempts,
    )
    return dispatcher
