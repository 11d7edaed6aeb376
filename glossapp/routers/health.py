# glossapp/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from glossapp.database import get_db
from glossapp.utils.logger import get_logger
from datetime import datetime

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check DB error: {e}")
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
