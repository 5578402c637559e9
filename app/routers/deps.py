"""Request-scoped wiring: one store, sink and engine per DB session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.counter_store import CounterStore
from app.services.history_service import HistorySink
from app.services.numbering_engine import NumberingEngine


def get_numbering_engine(db: Session = Depends(get_db)) -> NumberingEngine:
    """FastAPI dependency — engine bound to the request's session and the process-wide tracker/locks."""
    return NumberingEngine(store=CounterStore(db), history=HistorySink(db))
