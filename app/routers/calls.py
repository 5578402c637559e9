"""Staff calling endpoints + the public "now calling" feed for displays."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.routers.deps import get_numbering_engine
from app.schemas.ticket import CallOut, CurrentCallOut, ServiceRequest
from app.services.numbering_engine import NumberingEngine

router = APIRouter()


@router.post("/calls/next", response_model=CallOut, summary="Call the next waiting ticket")
def call_next(body: ServiceRequest, engine: NumberingEngine = Depends(get_numbering_engine)):
    """404 when nobody is waiting for this service."""
    return engine.call_next(body.service).to_dict()


@router.post("/calls/recall", response_model=CallOut, summary="Re-announce the last called ticket")
def recall_last(body: ServiceRequest, engine: NumberingEngine = Depends(get_numbering_engine)):
    """Does not advance the queue. 404 when nothing has been called since the last reset."""
    return engine.recall_last(body.service).to_dict()


@router.get("/calls/latest", response_model=dict[str, Optional[CurrentCallOut]],
            summary="Numbers currently being called, per service")
def latest_calls(engine: NumberingEngine = Depends(get_numbering_engine)):
    """Polled by the display screens. A service maps to null when nothing is on screen."""
    return engine.latest_calls()
