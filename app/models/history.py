"""
Call history table — append-only log of every call and recall.
Written by the numbering engine, read by reports and customer-code lookups.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from app.database import Base


class HistoryRecord(Base):
    __tablename__ = "call_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String(100), nullable=False, index=True)
    display_number = Column(Integer, nullable=False)
    raw_sequence = Column(Integer, nullable=False)
    is_recall = Column(Boolean, default=False, nullable=False)
    called_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        flag = " recall" if self.is_recall else ""
        return f"<HistoryRecord {self.service} #{self.display_number}{flag}>"
