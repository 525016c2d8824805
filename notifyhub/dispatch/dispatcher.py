"""Notification dispatcher: channel -> rate limit -> template -> send with retry -> audit."""

import enum
import logging
import time
import uuid
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from ..audit.models import DeliveryStatus
from ..audit.service import AuditEntry, AuditLog
from ..channels.registry import ChannelRegistry
from ..exceptions import (
    ConfigurationError,
    InvalidRequestError,
    NotifyHubError,
    RateLimitedError,
    TemplateNotFoundError,
    TemplateRenderError,
    UnknownChannelError,
)
from ..templates.resolver import RenderedMessage, TemplateResolver
from .limiter import RateLimiter
from .retry import RetryPolicy
from .schemas import NotificationRequest, NotificationResult

logger = logging.getLogger(__name__)


class DispatchState(enum.StrEnum):
    RECEIVED = "received"
    CHANNEL_RESOLVED = "channel_resolved"
    RATE_CHECKED = "rate_checked"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class NotificationDispatcher:
    """Synchronous, thread-safe entry point for sending one notification.

    Per-request failures (unknown channel, rate limit, send failure, timeout) are
    folded into a failed ``NotificationResult``; each call writes exactly one
    audit entry. A missing or unrenderable template, or a template store that
    cannot be reached, only produces a warning.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        resolver: TemplateResolver,
        limiter: RateLimiter,
        retry_policy: RetryPolicy,
        audit_log: AuditLog,
        default_channel: str,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        default_channel = (default_channel or "").strip().lower()
        if default_channel not in registry:
            raise ConfigurationError(f"Default channel {default_channel!r} has no registered sender")
        self._registry = registry
        self._resolver = resolver
        self._limiter = limiter
        self._retry = retry_policy
        self._audit = audit_log
        self.default_channel = default_channel
        self._clock = clock
        self._id_factory = id_factory

    @property
    def channels(self) -> list[str]:
        return self._registry.channels

    def dispatch(self, request: NotificationRequest, timeout: float | None = None) -> NotificationResult:
        """Send ``request``; ``timeout`` bounds the whole send including retries."""
        if not request.recipient or not request.recipient.strip():
            raise InvalidRequestError("Recipient is required")
        if not request.template_code or not request.template_code.strip():
            raise InvalidRequestError("Template code is required")

        notification_id = self._id_factory()
        channel = request.channel or self.default_channel
        deadline = self._clock() + timeout if timeout is not None else None
        state = DispatchState.RECEIVED
        logger.info(
            "Dispatching notification: id=%s, recipient=%s, channel=%s, template=%s",
            notification_id, request.recipient, channel, request.template_code,
        )

        error: NotifyHubError | None = None
        try:
            sender = self._registry.resolve(channel)
            state = self._advance(notification_id, state, DispatchState.CHANNEL_RESOLVED)

            if not self._limiter.try_acquire(channel):
                raise RateLimitedError(channel)
            state = self._advance(notification_id, state, DispatchState.RATE_CHECKED)

            message = self._prepare(request, channel)
            state = self._advance(notification_id, state, DispatchState.SENDING)
            self._retry.execute(lambda: sender.send(request, message), deadline=deadline)
            state = self._advance(notification_id, state, DispatchState.SUCCEEDED)
        except NotifyHubError as exc:
            error = exc
            state = self._advance(notification_id, state, DispatchState.FAILED)
            if isinstance(exc, (UnknownChannelError, RateLimitedError)):
                logger.warning("Notification rejected: id=%s, reason=%s", notification_id, exc.message)
            else:
                logger.error("Failed to dispatch notification: id=%s, error=%s", notification_id, exc.message)

        self._audit.append(
            AuditEntry(
                notification_id=notification_id,
                recipient=request.recipient,
                channel=channel,
                template_code=request.template_code,
                status=DeliveryStatus.SUCCESS if error is None else DeliveryStatus.FAILED,
                error_message=error.message if error else None,
            )
        )

        if error is not None:
            return NotificationResult.failure(f"Failed to send notification: {error.message}", error.code)
        logger.info("Notification dispatched successfully: id=%s", notification_id)
        return NotificationResult.delivered(notification_id)

    def _prepare(self, request: NotificationRequest, channel: str) -> RenderedMessage | None:
        try:
            template = self._resolver.resolve(request.template_code, request.locale, channel)
            return self._resolver.render(template, request.payload)
        except (TemplateNotFoundError, TemplateRenderError) as exc:
            logger.warning("Sending without template: %s", exc.message)
            return None
        except SQLAlchemyError:
            logger.warning(
                "Template store unavailable, sending without template: code=%s, channel=%s",
                request.template_code, channel, exc_info=True,
            )
            return None

    @staticmethod
    def _advance(notification_id: str, current: DispatchState, target: DispatchState) -> DispatchState:
        logger.debug("Dispatch %s: %s -> %s", notification_id, current, target)
        return target
