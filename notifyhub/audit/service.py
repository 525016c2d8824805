"""Audit log service: append-only record of dispatch outcomes."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.orm import Session

from .models import DeliveryStatus, NotificationLog


@dataclass(frozen=True, slots=True)
class AuditEntry:
    notification_id: str
    recipient: str
    channel: str
    template_code: str | None
    status: DeliveryStatus
    error_message: str | None = None
    sent_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class AuditLog(Protocol):
    """Append-only audit store. Duplicate notification ids are accepted."""

    def append(self, entry: AuditEntry) -> None: ...


def record_entry(db: Session, entry: AuditEntry) -> NotificationLog:
    log = NotificationLog(
        notification_id=entry.notification_id,
        recipient=entry.recipient,
        channel=entry.channel,
        template_code=entry.template_code,
        status=entry.status.value,
        sent_at=entry.sent_at,
        error_message=entry.error_message,
    )
    db.add(log)
    db.flush()
    return log


def find_by_recipient(db: Session, recipient: str) -> list[NotificationLog]:
    return (
        db.query(NotificationLog)
        .filter(NotificationLog.recipient == recipient)
        .order_by(NotificationLog.sent_at.desc())
        .all()
    )


def find_by_notification_id(db: Session, notification_id: str) -> list[NotificationLog]:
    return db.query(NotificationLog).filter(NotificationLog.notification_id == notification_id).all()


def find_by_status_and_range(
    db: Session,
    status: DeliveryStatus,
    start: datetime,
    end: datetime,
) -> list[NotificationLog]:
    return (
        db.query(NotificationLog)
        .filter(
            NotificationLog.status == status.value,
            NotificationLog.sent_at.between(start, end),
        )
        .order_by(NotificationLog.sent_at.desc())
        .all()
    )


class SqlAuditLog:
    """Audit log writing each entry in its own transaction."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def append(self, entry: AuditEntry) -> None:
        db = self._session_factory()
        try:
            record_entry(db, entry)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
