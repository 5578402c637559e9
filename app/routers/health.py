"""
System health check endpoint.
Returns status of backend + DB + the daily reset marker.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.services.reset_scheduler import reset_scheduler
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Last daily reset day and the configured timezone
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "timezone": reset_scheduler.tz.key,
        "last_reset_day": None,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["last_reset_day"] = reset_scheduler.last_reset_day(db)
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
