from pydantic import BaseModel
from datetime import datetime


class HistoryRecordOut(BaseModel):
    id: int
    service: str
    display_number: int
    raw_sequence: int
    is_recall: bool
    called_at: datetime

    class Config:
        from_attributes = True
