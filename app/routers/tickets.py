"""Ticket kiosk endpoint — draw a number for a service line."""

from fastapi import APIRouter, Depends

from app.routers.deps import get_numbering_engine
from app.schemas.ticket import ServiceRequest, TicketOut
from app.services.numbering_engine import NumberingEngine

router = APIRouter()


@router.post("/tickets", response_model=TicketOut, summary="Draw the next ticket for a service")
def issue_ticket(body: ServiceRequest, engine: NumberingEngine = Depends(get_numbering_engine)):
    """
    Returns the display number (counter prefix × 1000 + sequence).
    Any known spelling of the service name is accepted; the response carries the canonical one.
    """
    return engine.issue_ticket(body.service).to_dict()
