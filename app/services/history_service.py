"""
Call history sink.
Append-only: the numbering engine adds one row per call and per recall and
never updates or deletes them. Readers (history API, reports) only query.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.history import HistoryRecord
from app.utils.logger import get_logger

logger = get_logger(__name__)


class HistorySink:
    def __init__(self, session: Session):
        self.session = session

    def append(self, service: str, display_number: int, raw_sequence: int,
               is_recall: bool, called_at: datetime) -> HistoryRecord:
        """Stage a history row in the caller's transaction."""
        record = HistoryRecord(service=service, display_number=display_number,
                               raw_sequence=raw_sequence, is_recall=is_recall,
                               called_at=called_at)
        self.session.add(record)
        self.session.flush()
        logger.debug(f"History + {record!r}")
        return record

    def recent(self, service: Optional[str] = None, limit: int = 100) -> list:
        q = self.session.query(HistoryRecord)
        if service:
            q = q.filter(HistoryRecord.service == service)
        return q.order_by(HistoryRecord.called_at.desc(), HistoryRecord.id.desc()).limit(limit).all()

