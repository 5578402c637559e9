"""
Administrative counter operations.
Reset zeroes today's numbers; wipe deletes and recreates the counter rows and
requires {"confirm": "YES"}. Neither touches call history or ratings.
"""

from fastapi import APIRouter, Depends

from app.routers.deps import get_numbering_engine
from app.schemas.admin import ResetOut, WipeOut, WipeRequest
from app.services.numbering_engine import NumberingEngine

router = APIRouter()


@router.post("/admin/reset", response_model=ResetOut, summary="Reset all counters to zero")
def reset_counters(engine: NumberingEngine = Depends(get_numbering_engine)):
    count = engine.reset_all()
    return {"status": "reset", "counters_reset": count}


@router.post("/admin/wipe", response_model=WipeOut, summary="Delete and recreate all counters")
def wipe_counters(body: WipeRequest, engine: NumberingEngine = Depends(get_numbering_engine)):
    deleted, created = engine.wipe_all(body.confirm)
    return {"status": "wiped", "deleted": deleted, "created": created}
