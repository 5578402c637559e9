from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ServiceRequest(BaseModel):
    service: str


class TicketOut(BaseModel):
    service: str
    counter_prefix: str
    raw_sequence: int
    display_number: int


class CallOut(BaseModel):
    service: str
    counter_prefix: str
    raw_sequence: int
    display_number: int
    waiting_count: int
    message: str
    is_recall: bool = False


class CurrentCallOut(BaseModel):
    number: int
    time: Optional[datetime]
    is_recall: bool

    class Config:
        from_attributes = True


class ServiceStatusOut(BaseModel):
    counter_prefix: str
    waiting: int
    last_called: Optional[int]
    issued: int
    called: int


class ServiceOut(BaseModel):
    name: str
    counter_prefix: str

    class Config:
        from_attributes = True
