"""Audit log response schema."""

from datetime import datetime

from pydantic import BaseModel


class LogEntryResponse(BaseModel):
    notification_id: str
    recipient: str
    channel: str
    template_code: str | None
    status: str
    sent_at: datetime
    error_message: str | None

    model_config = {"from_attributes": True}
