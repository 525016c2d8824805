"""NotifyHub application: lifespan wiring, error mapping, middleware, health."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from limits import parse as parse_rate_limit
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api import api_router
from .config import settings, setup_logging
from .database.base import SessionLocal, get_db
from .dispatch.service import build_dispatcher
from .exceptions import InvalidRequestError
from .rate_limit import limiter

logger = logging.getLogger(__name__)

VERSION = "2.0.0"
ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"

# Seconds until the per-client notify window reopens.
_NOTIFY_RETRY_AFTER = str(parse_rate_limit(settings.rate_limit_notify).get_expiry())


def _run_migrations() -> None:
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.effective_database_url)
    logger.info("Applying database migrations from %s", ALEMBIC_DIR)
    command.upgrade(alembic_cfg, "head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, migrate, build the dispatcher.

    Any ConfigurationError from the dispatcher wiring propagates and aborts startup.
    """
    app.state.started_at = time.monotonic()
    setup_logging(settings)
    if settings.run_migrations:
        _run_migrations()

    app.state.dispatcher = build_dispatcher(settings, SessionLocal)
    logger.info("NotifyHub %s ready", VERSION)
    yield
    logger.info("NotifyHub shutting down")


def _failure_body(message: str) -> dict:
    return {"success": False, "message": message, "notificationId": None}


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.warning("Client rate limit hit: path=%s, limit=%s", request.url.path, exc.detail)
    return JSONResponse(
        _failure_body(f"Too many requests: {exc.detail}"),
        status_code=429,
        headers={"Retry-After": _NOTIFY_RETRY_AFTER},
    )


async def _invalid_request_handler(request: Request, exc: InvalidRequestError) -> Response:
    return JSONResponse(_failure_body(exc.message), status_code=422)


async def _unhandled_error_handler(request: Request, exc: Exception) -> Response:
    # Audit store outages land here: the dispatch outcome could not be recorded.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(_failure_body("Internal server error"), status_code=500)


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
def health(request: Request, db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable", exc_info=True)
        db_status = "unreachable"

    dispatcher = getattr(request.app.state, "dispatcher", None)
    started_at = getattr(request.app.state, "started_at", None)
    return {
        "status": "ok" if db_status == "ok" and dispatcher is not None else "degraded",
        "db": db_status,
        "default_channel": dispatcher.default_channel if dispatcher else None,
        "channels": dispatcher.channels if dispatcher else [],
        "rate_limit_backend": settings.rate_limit_backend,
        "version": VERSION,
        "uptime_seconds": round(time.monotonic() - started_at, 1) if started_at else 0.0,
    }


def create_app() -> FastAPI:
    app = FastAPI(title="NotifyHub", version=VERSION, lifespan=lifespan)

    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # Middleware runs last-added first.
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Forwarded-For"],
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    app.include_router(api_router)
    app.include_router(health_router)
    # Same probe under the API prefix for clients that poll /api/health.
    app.include_router(health_router, prefix="/api", include_in_schema=False)
    return app


app = create_app()
