"""Notification request/response schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_LOCALE = "en"


class NotificationRequest(BaseModel):
    """Inbound notification. Immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    recipient: str = Field(..., min_length=1, max_length=255)
    channel: str | None = Field(None, max_length=50)
    template_code: str = Field(..., min_length=1, max_length=100)
    locale: str = Field(DEFAULT_LOCALE, max_length=10)
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("recipient", "template_code", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value

    @field_validator("channel", mode="before")
    @classmethod
    def _normalize_channel(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("locale", mode="before")
    @classmethod
    def _default_locale(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_LOCALE
        return value.strip() if isinstance(value, str) else value

    @field_validator("payload", mode="before")
    @classmethod
    def _default_payload(cls, value: Any) -> Any:
        return {} if value is None else value


class NotificationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    success: bool
    message: str
    notification_id: str | None = None
    error_code: str | None = Field(None, exclude=True)

    @classmethod
    def delivered(cls, notification_id: str) -> "NotificationResult":
        return cls(success=True, message="Notification sent successfully", notification_id=notification_id)

    @classmethod
    def failure(cls, message: str, error_code: str | None = None) -> "NotificationResult":
        return cls(success=False, message=message, error_code=error_code)
