"""
Customer satisfaction ratings.
Two submission shapes coexist: the legacy 4-criteria form (service, time,
attitude, overall) and the current overall-only form. Both land here.
"""

from sqlalchemy import Column, DateTime, Integer, String, Text
from app.database import Base


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String(100), nullable=False, index=True)
    overall = Column(Integer, nullable=False)
    service_rating = Column(Integer)
    time_rating = Column(Integer)
    attitude_rating = Column(Integer)
    comment = Column(Text, default="")
    customer_code = Column(String(50), default="")
    submitted_at = Column(DateTime, nullable=False, index=True)

    @property
    def is_detailed(self) -> bool:
        return self.service_rating is not None

    def __repr__(self):
        return f"<Rating {self.id} {self.service} overall={self.overall}>"
