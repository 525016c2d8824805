"""Notification dispatch route."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import settings
from ..dependencies import get_dispatcher
from ..rate_limit import limiter
from .dispatcher import NotificationDispatcher
from .schemas import NotificationRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])

_STATUS_BY_ERROR = {
    "rate_limited": 429,
    "timeout": 504,
}


@router.post("/notify")
@limiter.limit(settings.rate_limit_notify)
def send_notification(
    request: Request,
    notification: NotificationRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    logger.info("Received notification request for recipient: %s", notification.recipient)
    result = dispatcher.dispatch(notification, timeout=settings.dispatch_timeout_seconds)
    status_code = 200 if result.success else _STATUS_BY_ERROR.get(result.error_code, 400)
    return JSONResponse(result.model_dump(by_alias=True), status_code=status_code)
