"""
Counter state table — one row per service line.
Holds how many tickets were issued and how many were called since the last
daily reset. Mutated only through CounterStore's conditional updates.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from app.database import Base


class CounterRecord(Base):
    __tablename__ = "counters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String(100), unique=True, nullable=False, index=True)
    issued_count = Column(Integer, default=0, nullable=False)
    called_count = Column(Integer, default=0, nullable=False)
    last_updated = Column(DateTime)

    __table_args__ = (
        CheckConstraint("called_count <= issued_count", name="ck_counters_called_le_issued"),
        CheckConstraint("called_count >= 0", name="ck_counters_called_non_negative"),
    )

    @property
    def waiting_count(self) -> int:
        return max(0, (self.issued_count or 0) - (self.called_count or 0))

    def __repr__(self):
        return f"<CounterRecord {self.service} issued={self.issued_count} called={self.called_count}>"
