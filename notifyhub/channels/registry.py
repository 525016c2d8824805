"""Channel name to sender resolution."""

import logging
from collections.abc import Iterable

from ..exceptions import ConfigurationError, DuplicateChannelError, UnknownChannelError
from .senders import NotificationSender

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Fixed set of senders, built once at startup.

    Two senders claiming the same channel is a configuration error, raised here
    rather than resolved by registration order.
    """

    def __init__(self, senders: Iterable[NotificationSender]) -> None:
        self._senders: dict[str, NotificationSender] = {}
        for sender in senders:
            name = sender.channel.strip().lower()
            if not name:
                raise ConfigurationError(f"{type(sender).__name__} declares no channel")
            if name in self._senders:
                raise DuplicateChannelError(name)
            self._senders[name] = sender
        logger.debug("Channel registry built: %s", ", ".join(self._senders))

    @property
    def channels(self) -> list[str]:
        return list(self._senders)

    def resolve(self, channel: str) -> NotificationSender:
        if not channel or not channel.strip():
            raise UnknownChannelError(channel or "")
        matches = [s for s in self._senders.values() if s.supports(channel)]
        if not matches:
            raise UnknownChannelError(channel)
        return matches[0]

    def __contains__(self, channel: str) -> bool:
        return any(s.supports(channel) for s in self._senders.values())

    def __len__(self) -> int:
        return len(self._senders)
