"""
Health and readiness checks, mounted at the root (no /api prefix).
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.limiter import limiter
from app.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/")
@limiter.exempt
def root():
    return {
        "message": "HRMS Back Office API",
        "version": settings.version,
        "docs": "/docs",
    }


@router.get("/health")
@limiter.exempt
def health_check():
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "build": settings.build_id,
        "environment": settings.environment,
    }


@router.get("/liveness")
@limiter.exempt
def liveness_check():
    return health_check()


@router.get("/readiness")
@limiter.exempt
def readiness_check(db: Session = Depends(get_db)):
    """Ready once the database answers a trivial query."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ready", "components": {"database": "connected"}}
