from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional


class RatingIn(BaseModel):
    """
    Either the overall-only form {service, overall} or the legacy detailed form
    with service_rating, time_rating and attitude_rating all present.
    """
    service: str
    overall: int = Field(ge=1, le=5)
    service_rating: Optional[int] = Field(default=None, ge=1, le=5)
    time_rating: Optional[int] = Field(default=None, ge=1, le=5)
    attitude_rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: str = Field(default="", max_length=2000)
    customer_code: str = Field(default="", max_length=50)

    @model_validator(mode="after")
    def detail_scores_all_or_none(self):
        given = [v is not None for v in (self.service_rating, self.time_rating, self.attitude_rating)]
        if any(given) and not all(given):
            raise ValueError("service_rating, time_rating and attitude_rating must be sent together")
        return self


class RatingOut(BaseModel):
    id: int
    service: str
    overall: int
    service_rating: Optional[int]
    time_rating: Optional[int]
    attitude_rating: Optional[int]
    comment: Optional[str]
    customer_code: Optional[str]
    submitted_at: datetime

    class Config:
        from_attributes = True
