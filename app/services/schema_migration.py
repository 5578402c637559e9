"""
Startup schema migration for the counters table.

Older releases wrote counters without called_count / last_updated, and under
service names that have since been renamed or mangled by charset problems.
This runs once at startup (and from scripts/setup/init_db.py) so every read
path can assume one canonical, fully populated row per service.
"""

from datetime import datetime

from sqlalchemy import inspect, text
from sqlalchemy.orm import Session, sessionmaker

from app.database import create_tables
from app.models.counter import CounterRecord
from app.services import service_registry
from app.services.errors import InvalidService
from app.utils.logger import get_logger

logger = get_logger(__name__)

# column -> DDL fragment for counters tables created by older releases
_BACKFILL_COLUMNS = {
    "called_count": "INTEGER NOT NULL DEFAULT 0",
    "last_updated": "TIMESTAMP",
}


def _backfill_columns(engine) -> list:
    existing = {c["name"] for c in inspect(engine).get_columns("counters")}
    added = []
    with engine.begin() as conn:
        for column, ddl in _BACKFILL_COLUMNS.items():
            if column not in existing:
                conn.execute(text(f"ALTER TABLE counters ADD COLUMN {column} {ddl}"))
                added.append(column)
        conn.execute(text("UPDATE counters SET called_count = 0 WHERE called_count IS NULL"))
        conn.execute(text("UPDATE counters SET called_count = issued_count WHERE called_count > issued_count"))
    return added


def _canonicalise_rows(db: Session) -> dict:
    merged = renamed = seeded = 0
    by_name = {}
    for record in db.query(CounterRecord).order_by(CounterRecord.id).all():
        try:
            canonical = service_registry.resolve(record.service).name
        except InvalidService:
            logger.warning(f"Counter row for unknown service '{record.service}' left as is")
            continue

        target = by_name.get(canonical)
        if target is None and canonical != record.service:
            target = db.query(CounterRecord).filter(CounterRecord.service == canonical).first()

        if target is not None and target is not record:
            target.issued_count = max(target.issued_count, record.issued_count)
            target.called_count = min(target.issued_count,
                                      max(target.called_count, record.called_count))
            db.delete(record)
            db.flush()
            by_name[canonical] = target
            merged += 1
            logger.info(f"Merged legacy counter '{record.service}' into '{canonical}'")
        else:
            if record.service != canonical:
                logger.info(f"Renamed legacy counter '{record.service}' → '{canonical}'")
                record.service = canonical
                db.flush()
                renamed += 1
            by_name[canonical] = record

    for desc in service_registry.all_services():
        if desc.name not in by_name:
            db.add(CounterRecord(service=desc.name, issued_count=0, called_count=0,
                                 last_updated=datetime.utcnow()))
            seeded += 1
    db.commit()
    return {"merged": merged, "renamed": renamed, "seeded": seeded}


def migrate_schema(engine=None) -> dict:
    """Create missing tables, backfill old columns, fold legacy service names."""
    if engine is None:
        from app.database import engine
    create_tables(engine)
    summary = {"columns_added": _backfill_columns(engine)}

    db = sessionmaker(bind=engine, autoflush=False)()
    try:
        summary.update(_canonicalise_rows(db))
    finally:
        db.close()

    logger.info(f"Schema migration done: {summary}")
    return summary
