"""Notification template model."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from ..database.base import Base


def _now() -> datetime:
    return datetime.now(UTC)


class NotificationTemplate(Base):
    """A subject/body pair for one (channel, template code, locale).

    Templates are never deleted; ``active=False`` hides them from every lookup.
    """

    __tablename__ = "notification_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel = Column(String(50), nullable=False)
    template_code = Column(String(100), nullable=False)
    subject_template = Column(String(500), nullable=True)
    body_template = Column(Text, nullable=False)
    locale = Column(String(10), nullable=False, default="en")
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint("channel", "template_code", "locale", name="uk_template_channel_code_locale"),
    )

    def __repr__(self) -> str:
        return (
            f"<NotificationTemplate id={self.id} channel={self.channel!r} "
            f"code={self.template_code!r} locale={self.locale!r} active={self.active}>"
        )
