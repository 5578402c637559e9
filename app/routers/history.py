"""Call history — newest first, optionally filtered by service."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas.history import HistoryRecordOut
from app.services import service_registry
from app.services.history_service import HistorySink

router = APIRouter()


@router.get("/history", response_model=list[HistoryRecordOut], summary="Call and recall log")
def list_history(service: Optional[str] = None,
                 limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1, le=5000),
                 db: Session = Depends(get_db)):
    """Used by staff to look up which number was called when (customer-code lookup)."""
    canonical = service_registry.canonical_name(service) if service else None
    return HistorySink(db).recent(service=canonical, limit=limit)
