"""
Health Endpoints

- GET /api/health        liveness; never touches the database
- GET /api/health/ready  readiness; 503 until PostgreSQL answers
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan import __version__
from studyplan.config import settings
from studyplan.db.base import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Report whether the database accepts queries."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {type(e).__name__}: {e}")
        return JSONResponse(
            status_code=503,
            content={"ready": False, "error": type(e).__name__},
        )
    return {"ready": True}
