"""
Counter Store — persistence for per-service CounterRecord rows.

Every mutation is a single conditional UPDATE (increment-and-check in one
statement), never load-mutate-save, so concurrent requests cannot lose an
update. Callers group statements with transaction(); nothing here commits
on its own except get_or_create().
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.counter import CounterRecord
from app.services.errors import StorageUnavailable
from app.utils.logger import get_logger

logger = get_logger(__name__)

_CREATE_RETRIES = 3


class CounterStore:
    def __init__(self, session: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.session = session
        self.clock = clock

    @contextmanager
    def transaction(self):
        """Commit on success, roll back on any error. DB errors become StorageUnavailable."""
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Counter store failure: {e}")
            raise StorageUnavailable(f"Storage failure: {e.__class__.__name__}") from e
        except Exception:
            self.session.rollback()
            raise

    # ── Reads ────────────────────────────────────────────────────────────────
    def get(self, service: str) -> Optional[CounterRecord]:
        try:
            return self.session.execute(
                select(CounterRecord).where(CounterRecord.service == service)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageUnavailable(f"Storage failure: {e.__class__.__name__}") from e

    def all(self) -> list:
        try:
            return list(self.session.execute(
                select(CounterRecord).order_by(CounterRecord.service)
                .execution_options(populate_existing=True)
            ).scalars())
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageUnavailable(f"Storage failure: {e.__class__.__name__}") from e

    def counts(self, service: str) -> Optional[tuple]:
        """(issued, called, last_updated) read inside the current transaction."""
        row = self.session.execute(
            select(CounterRecord.issued_count, CounterRecord.called_count, CounterRecord.last_updated)
            .where(CounterRecord.service == service)
        ).first()
        return tuple(row) if row else None

    # ── Creation ─────────────────────────────────────────────────────────────
    def get_or_create(self, service: str) -> CounterRecord:
        """
        Return the record for `service`, inserting a zeroed one if absent.
        A concurrent first request loses on the unique constraint and re-reads.
        """
        for attempt in range(1, _CREATE_RETRIES + 1):
            record = self.get(service)
            if record:
                return record
            try:
                record = CounterRecord(service=service, issued_count=0, called_count=0,
                                       last_updated=self.clock())
                self.session.add(record)
                self.session.commit()
                logger.info(f"Created counter record for {service}")
                return record
            except IntegrityError:
                self.session.rollback()
                logger.debug(f"Counter for {service} created concurrently (attempt {attempt})")
            except SQLAlchemyError as e:
                self.session.rollback()
                raise StorageUnavailable(f"Storage failure: {e.__class__.__name__}") from e
        raise StorageUnavailable(f"Could not create counter record for {service}")

    # ── Atomic mutations (call inside transaction()) ─────────────────────────
    def increment_issued(self, service: str, limit: int) -> Optional[int]:
        """issued_count += 1 unless it already reached `limit`. Returns the new count or None."""
        result = self.session.execute(
            update(CounterRecord)
            .where(CounterRecord.service == service, CounterRecord.issued_count < limit)
            .values(issued_count=CounterRecord.issued_count + 1, last_updated=self.clock())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.counts(service)[0]

    def advance_called(self, service: str) -> Optional[tuple]:
        """called_count += 1 only while someone is waiting. Returns (called, issued) or None."""
        result = self.session.execute(
            update(CounterRecord)
            .where(CounterRecord.service == service,
                   CounterRecord.called_count < CounterRecord.issued_count)
            .values(called_count=CounterRecord.called_count + 1, last_updated=self.clock())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        issued, called, _ = self.counts(service)
        return called, issued

    def touch(self, service: str) -> None:
        self.session.execute(
            update(CounterRecord)
            .where(CounterRecord.service == service)
            .values(last_updated=self.clock())
            .execution_options(synchronize_session=False)
        )

    def reset_all(self) -> int:
        """Zero every counter. Returns the number of records reset."""
        result = self.session.execute(
            update(CounterRecord).values(issued_count=0, called_count=0, last_updated=self.clock())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def wipe_all(self, services) -> tuple:
        """Delete every record and recreate one empty record per service name."""
        existing = self.session.execute(select(CounterRecord)).scalars().all()
        for record in existing:
            self.session.delete(record)
        # Deletes must hit the table before re-inserting the same unique names
        self.session.flush()
        deleted = len(existing)
        now = self.clock()
        for name in services:
            self.session.add(CounterRecord(service=name, issued_count=0, called_count=0,
                                           last_updated=now))
        self.session.flush()
        return deleted, len(services)
