"""Key/value rows for daily reset bookkeeping (key "lastResetDay")."""

from sqlalchemy import Column, DateTime, String
from app.database import Base

LAST_RESET_DAY_KEY = "lastResetDay"


class ResetState(Base):
    __tablename__ = "reset_state"

    key = Column(String(50), primary_key=True)
    value = Column(String(50), nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<ResetState {self.key}={self.value}>"
