"""Shared FastAPI dependencies."""

from fastapi import Request

from .dispatch.dispatcher import NotificationDispatcher


def get_dispatcher(request: Request) -> NotificationDispatcher:
    """Get the dispatcher built during lifespan startup."""
    return request.app.state.dispatcher
