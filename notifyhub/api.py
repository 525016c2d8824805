"""API router: all JSON endpoints under the /api prefix."""

from fastapi import APIRouter

from .audit.routes import router as audit_router
from .dispatch.routes import router as dispatch_router
from .templates.routes import router as templates_router

api_router = APIRouter(prefix="/api", tags=["api"])

api_router.include_router(dispatch_router)
api_router.include_router(templates_router)
api_router.include_router(audit_router)
