"""Audit log query routes."""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database.base import get_db
from .models import DeliveryStatus
from .schemas import LogEntryResponse
from .service import find_by_notification_id, find_by_recipient, find_by_status_and_range

router = APIRouter(prefix="/logs", tags=["audit"])


@router.get("")
def list_logs(
    recipient: str | None = Query(None),
    notification_id: str | None = Query(None),
    status: DeliveryStatus | None = Query(None),
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    db: Session = Depends(get_db),
):
    if notification_id:
        logs = find_by_notification_id(db, notification_id)
    elif recipient:
        logs = find_by_recipient(db, recipient)
    elif status:
        end = end or datetime.now(UTC)
        start = start or end - timedelta(days=1)
        logs = find_by_status_and_range(db, status, start, end)
    else:
        return JSONResponse({"error": "Provide recipient, notification_id or status"}, status_code=400)
    return JSONResponse(
        {"logs": [LogEntryResponse.model_validate(log).model_dump(mode="json") for log in logs]}
    )
