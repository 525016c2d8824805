"""Audit trail of dispatch outcomes."""

import enum
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from ..database.base import Base


class DeliveryStatus(enum.StrEnum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class NotificationLog(Base):
    """One row per dispatch: the final outcome, never the individual retries."""

    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(String(100), nullable=False, index=True)
    recipient = Column(String(255), nullable=False, index=True)
    channel = Column(String(50), nullable=False)
    template_code = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False)
    sent_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    error_message = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (Index("idx_notification_logs_status_sent_at", "status", "sent_at"),)
