"""API Routes."""

from fastapi import APIRouter

from .audit import router as audit_router
from .auth import router as auth_router
from .chapters import router as chapters_router
from .health import router as health_router
from .reader import router as reader_router
from .subjects import router as subjects_router
from .topics import router as topics_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(auth_router)
api_router.include_router(subjects_router)
api_router.include_router(chapters_router)
api_router.include_router(topics_router)
api_router.include_router(audit_router)
api_router.include_router(reader_router)
