"""Template store: queries and admin CRUD for notification templates.

Every lookup used for dispatch filters ``active = true`` in SQL, so inactive
rows never reach the resolver.
"""

from collections.abc import Callable
from typing import Protocol

from sqlalchemy.orm import Session

from .models import NotificationTemplate


class TemplateStore(Protocol):
    """Read side of the template store used by the resolver."""

    def find_template(self, channel: str, code: str, locale: str) -> NotificationTemplate | None: ...
    def find_active_by_channel(self, channel: str) -> list[NotificationTemplate]: ...


def find_template(db: Session, channel: str, code: str, locale: str) -> NotificationTemplate | None:
    return (
        db.query(NotificationTemplate)
        .filter(
            NotificationTemplate.channel == channel,
            NotificationTemplate.template_code == code,
            NotificationTemplate.locale == locale,
            NotificationTemplate.active.is_(True),
        )
        .first()
    )


def find_active_by_channel(db: Session, channel: str) -> list[NotificationTemplate]:
    return (
        db.query(NotificationTemplate)
        .filter(NotificationTemplate.channel == channel, NotificationTemplate.active.is_(True))
        .order_by(NotificationTemplate.template_code, NotificationTemplate.locale)
        .all()
    )


def find_by_code_and_locale(db: Session, code: str, locale: str) -> NotificationTemplate | None:
    """Code-only lookup across channels."""
    return (
        db.query(NotificationTemplate)
        .filter(
            NotificationTemplate.template_code == code,
            NotificationTemplate.locale == locale,
            NotificationTemplate.active.is_(True),
        )
        .order_by(NotificationTemplate.channel)
        .first()
    )


def find_all_by_code(db: Session, code: str) -> list[NotificationTemplate]:
    """Admin listing: every channel and locale, active or not."""
    return (
        db.query(NotificationTemplate)
        .filter(NotificationTemplate.template_code == code)
        .order_by(NotificationTemplate.channel, NotificationTemplate.locale)
        .all()
    )


def get_template(db: Session, template_id: int) -> NotificationTemplate | None:
    return db.query(NotificationTemplate).filter(NotificationTemplate.id == template_id).first()


def create_template(
    db: Session,
    channel: str,
    template_code: str,
    body_template: str,
    locale: str = "en",
    subject_template: str | None = None,
    active: bool = True,
) -> NotificationTemplate:
    template = NotificationTemplate(
        channel=channel.strip().lower(),
        template_code=template_code,
        body_template=body_template,
        locale=locale,
        subject_template=subject_template,
        active=active,
    )
    db.add(template)
    db.flush()
    return template


def update_template(
    db: Session,
    template_id: int,
    subject_template: str | None = None,
    body_template: str | None = None,
    active: bool | None = None,
) -> NotificationTemplate | None:
    template = get_template(db, template_id)
    if not template:
        return None
    if subject_template is not None:
        template.subject_template = subject_template
    if body_template is not None:
        template.body_template = body_template
    if active is not None:
        template.active = active
    db.flush()
    return template


def deactivate_template(db: Session, template_id: int) -> bool:
    template = get_template(db, template_id)
    if not template:
        return False
    template.active = False
    db.flush()
    return True


class SqlTemplateStore:
    """Template store backed by short-lived sessions, safe to share across threads."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def find_template(self, channel: str, code: str, locale: str) -> NotificationTemplate | None:
        db = self._session_factory()
        try:
            return find_template(db, channel, code, locale)
        finally:
            db.close()

    def find_active_by_channel(self, channel: str) -> list[NotificationTemplate]:
        db = self._session_factory()
        try:
            return find_active_by_channel(db, channel)
        finally:
            db.close()
