from pydantic import BaseModel
from typing import Optional


class WipeRequest(BaseModel):
    confirm: Optional[str] = None


class WipeOut(BaseModel):
    status: str
    deleted: int
    created: int


class ResetOut(BaseModel):
    status: str
    counters_reset: int
