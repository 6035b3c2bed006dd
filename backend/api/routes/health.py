"""Liveness and database readiness probes."""

import asyncio
import logging
import time
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])
settings = get_settings()

DB_PROBE_TIMEOUT_SECONDS = 5.0


def _service_info() -> dict:
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health")
async def health_check():
    return {"status": "healthy", **_service_info()}


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Report whether the content store answers a trivial query."""
    started = time.perf_counter()
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_PROBE_TIMEOUT_SECONDS)
        database = "connected"
    except TimeoutError:
        logger.error("Database probe timed out after %.1fs", DB_PROBE_TIMEOUT_SECONDS)
        database = "error: database timeout"
    except SQLAlchemyError as e:
        logger.error("Database probe failed: %s", e.__class__.__name__)
        database = "error: database check failed"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "dialect": db.bind.dialect.name,
        "latency_ms": round((time.perf_counter() - started) * 1000, 1),
        **_service_info(),
    }
