"""Customer satisfaction ratings — submission + summary report."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.rating import RatingIn, RatingOut
from app.services.rating_service import ratings_report, submit_rating

router = APIRouter()


@router.post("/ratings", response_model=RatingOut, summary="Submit a satisfaction rating")
def post_rating(body: RatingIn, db: Session = Depends(get_db)):
    """Accepts the overall-only form or the detailed 4-score form."""
    return submit_rating(db, **body.model_dump())


@router.get("/ratings/report", summary="Rating totals, averages and star distribution")
def get_ratings_report(db: Session = Depends(get_db)):
    return ratings_report(db)
