"""Error taxonomy for notification dispatch."""


class NotifyHubError(Exception):
    """Base exception for all dispatch errors."""

    code = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(NotifyHubError):
    """Raised at startup when the dispatch wiring is invalid."""

    code = "configuration"


class DuplicateChannelError(ConfigurationError):
    """Raised when more than one sender claims the same channel."""

    code = "duplicate_channel"

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Duplicate sender for channel: {channel}")


class UnknownChannelError(NotifyHubError):
    code = "unknown_channel"

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Unknown channel: {channel}")


class TemplateNotFoundError(NotifyHubError):
    code = "template_not_found"

    def __init__(self, channel: str, code: str, locale: str) -> None:
        self.channel = channel
        self.template_code = code
        self.locale = locale
        super().__init__(f"Template not found: channel={channel}, code={code}, locale={locale}")


class TemplateRenderError(NotifyHubError):
    code = "template_render"


class RateLimitedError(NotifyHubError):
    code = "rate_limited"

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Rate limit exceeded for channel: {channel}")


class SendFailedError(NotifyHubError):
    """Terminal send failure. Never retried."""

    code = "send_failed"


class TransientSendError(NotifyHubError):
    """Send failure worth retrying (provider hiccup, I/O timeout)."""

    code = "send_transient"


class DispatchTimeoutError(NotifyHubError):
    code = "timeout"


class InvalidRequestError(NotifyHubError):
    code = "invalid_request"
