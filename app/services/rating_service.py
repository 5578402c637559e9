"""
Customer satisfaction ratings — submission and summary report.
Ratings are a downstream consumer of the queue: nothing in the numbering
engine reads them, and daily resets never touch them.
"""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.models.rating import Rating
from app.services import service_registry
from app.utils.logger import get_logger

logger = get_logger(__name__)

_DETAIL_FIELDS = ("service_rating", "time_rating", "attitude_rating")


def submit_rating(db: Session, service: str, overall: int, service_rating=None,
                  time_rating=None, attitude_rating=None, comment: str = "",
                  customer_code: str = "") -> Rating:
    """Persist one rating for a resolved service. Always commits immediately."""
    desc = service_registry.resolve(service)
    rating = Rating(service=desc.name, overall=overall, service_rating=service_rating,
                    time_rating=time_rating, attitude_rating=attitude_rating,
                    comment=comment or "", customer_code=customer_code or "",
                    submitted_at=datetime.utcnow())
    db.add(rating)
    db.commit()
    kind = "detailed" if rating.is_detailed else "overall-only"
    logger.info(f"⭐ Rating {overall}/5 ({kind}) for {desc.name}")
    return rating


def _avg(values) -> float:
    values = [v for v in values if v is not None]
    return round(sum(values) / len(values), 2) if values else 0.0


def ratings_report(db: Session, now: datetime = None) -> dict:
    """Totals, averages and a 1–5 star distribution per service."""
    now = now or datetime.utcnow()
    ratings = db.query(Rating).order_by(Rating.submitted_at.desc()).all()
    detailed = [r for r in ratings if r.is_detailed]

    services = {}
    for desc in service_registry.all_services():
        rows = [r for r in ratings if r.service == desc.name]
        if not rows:
            continue
        services[desc.name] = {
            "count": len(rows),
            "overall_average": _avg(r.overall for r in rows),
            "distribution": {f"star{i}": sum(1 for r in rows if r.overall == i) for i in range(1, 6)},
            "with_comments": sum(1 for r in rows if r.comment and r.comment.strip()),
        }

    return {
        "total": len(ratings),
        "detailed_count": len(detailed),
        "overall_only_count": len(ratings) - len(detailed),
        "overall_average": _avg(r.overall for r in ratings),
        "detailed_averages": {f: _avg(getattr(r, f) for r in detailed) for f in _DETAIL_FIELDS},
        "with_customer_code": sum(1 for r in ratings if r.customer_code and r.customer_code.strip()),
        "last_7_days": sum(1 for r in ratings if r.submitted_at >= now - timedelta(days=7)),
        "services": services,
    }
