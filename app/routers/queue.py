"""Queue status and service listing endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.routers.deps import get_numbering_engine
from app.schemas.ticket import ServiceOut, ServiceStatusOut
from app.services import service_registry
from app.services.numbering_engine import NumberingEngine

router = APIRouter()


@router.get("/queue/status", response_model=dict[str, ServiceStatusOut],
            summary="Waiting count and last called number")
def queue_status(service: Optional[str] = None,
                 engine: NumberingEngine = Depends(get_numbering_engine)):
    """All services, or just one when `service` is given."""
    return engine.status(service)


@router.get("/services", response_model=list[ServiceOut], summary="Service lines and counter prefixes")
def list_services():
    return list(service_registry.all_services())
