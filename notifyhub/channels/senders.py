"""Channel senders.

Delivery providers are out of scope: each sender logs the message it would
deliver and returns. Malformed recipients are rejected as terminal failures.
"""

import logging
from abc import ABC, abstractmethod

from ..dispatch.schemas import NotificationRequest
from ..exceptions import SendFailedError
from ..templates.resolver import RenderedMessage

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Base class for all channel senders."""

    channel: str = ""

    @abstractmethod
    def send(self, request: NotificationRequest, message: RenderedMessage | None = None) -> None:
        """Deliver ``request`` on this channel.

        Raise ``SendFailedError`` for terminal failures and ``TransientSendError``
        (or an ``OSError``) for failures worth retrying.
        """

    def supports(self, channel: str) -> bool:
        return bool(channel) and self.channel.lower() == channel.strip().lower()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} channel={self.channel!r}>"


class EmailNotificationSender(NotificationSender):
    channel = "email"

    def send(self, request: NotificationRequest, message: RenderedMessage | None = None) -> None:
        if "@" not in request.recipient:
            raise SendFailedError(f"Invalid email recipient: {request.recipient}")
        logger.info("Sending EMAIL notification to: %s with template: %s", request.recipient, request.template_code)
        logger.debug(
            "Email details - locale=%s, subject=%r, payload=%s",
            request.locale,
            message.subject if message else None,
            request.payload,
        )
        logger.info("EMAIL notification sent to: %s", request.recipient)


class SmsNotificationSender(NotificationSender):
    channel = "sms"

    def send(self, request: NotificationRequest, message: RenderedMessage | None = None) -> None:
        if not any(ch.isdigit() for ch in request.recipient):
            raise SendFailedError(f"Invalid SMS recipient: {request.recipient}")
        logger.info("Sending SMS notification to: %s with template: %s", request.recipient, request.template_code)
        logger.debug("SMS details - locale=%s, length=%d", request.locale, len(message.body) if message else 0)
        logger.info("SMS notification sent to: %s", request.recipient)


class PushNotificationSender(NotificationSender):
    channel = "push"

    def send(self, request: NotificationRequest, message: RenderedMessage | None = None) -> None:
        logger.info("Sending PUSH notification to: %s with template: %s", request.recipient, request.template_code)
        logger.debug(
            "Push details - locale=%s, title=%r, payload=%s",
            request.locale,
            message.subject if message else None,
            request.payload,
        )
        logger.info("PUSH notification sent to: %s", request.recipient)


def default_senders() -> list[NotificationSender]:
    return [EmailNotificationSender(), SmsNotificationSender(), PushNotificationSender()]
