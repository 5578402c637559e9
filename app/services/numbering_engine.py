"""
Numbering Engine — issue, call, and recall ticket numbers per service line.

Display numbers carry the counter in the thousands digit:
    display_number = counter_prefix * 1000 + raw_sequence     (2, 7 → 2007)
so raw_sequence is capped at settings.MAX_SEQUENCE (999) per reset period.

Mutations are serialized per service twice over: a process-local lock per
service name, and conditional single-statement UPDATEs in CounterStore that
keep called_count <= issued_count even if two processes share a database.
Each mutation is one transaction: counters and history commit together or
not at all.
"""

import threading
from contextlib import ExitStack, contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.config import settings
from app.services import service_registry
from app.services.counter_store import CounterStore
from app.services.errors import (
    ConfirmationRequired, NoCustomerWaiting, NothingCalledYet, TicketLimitReached,
)
from app.services.history_service import HistorySink
from app.services.recall_tracker import RecallTracker, recall_tracker
from app.services.reset_scheduler import DailyResetScheduler, reset_scheduler
from app.utils.logger import get_logger

logger = get_logger(__name__)


def display_number(counter_prefix: str, raw_sequence: int) -> int:
    if not 1 <= raw_sequence <= 999:
        raise ValueError(f"raw_sequence {raw_sequence} outside 1..999")
    return int(counter_prefix) * 1000 + raw_sequence


@dataclass
class TicketResult:
    service: str
    counter_prefix: str
    raw_sequence: int
    display_number: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CallResult:
    service: str
    counter_prefix: str
    raw_sequence: int
    display_number: int
    waiting_count: int
    message: str
    is_recall: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CurrentCall:
    number: int
    time: Optional[datetime]
    is_recall: bool


class ServiceLocks:
    """One lock per service name, created on first use."""

    def __init__(self):
        self._locks = {}
        self._guard = threading.Lock()

    def for_service(self, service: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(service)
            if lock is None:
                lock = self._locks[service] = threading.Lock()
            return lock


service_locks = ServiceLocks()


class NumberingEngine:
    def __init__(self, store: CounterStore, history: HistorySink,
                 tracker: RecallTracker = recall_tracker,
                 resetter: Optional[DailyResetScheduler] = reset_scheduler,
                 locks: ServiceLocks = service_locks,
                 clock: Callable[[], datetime] = datetime.utcnow,
                 max_sequence: int = settings.MAX_SEQUENCE,
                 freshness_seconds: float = settings.CALL_DISPLAY_FRESHNESS_SECONDS):
        self.store = store
        self.history = history
        self.tracker = tracker
        self.resetter = resetter
        self.locks = locks
        self.clock = clock
        self.max_sequence = min(max_sequence, 999)
        self.freshness = timedelta(seconds=freshness_seconds)

    def _lazy_reset(self):
        if self.resetter is not None:
            self.resetter.lazy_reset(self.store.session)

    # ── Mutations ────────────────────────────────────────────────────────────
    def issue_ticket(self, service: str) -> TicketResult:
        desc = service_registry.resolve(service)
        self._lazy_reset()
        with self.locks.for_service(desc.name):
            self.store.get_or_create(desc.name)
            with self.store.transaction():
                issued = self.store.increment_issued(desc.name, self.max_sequence)
            if issued is None:
                logger.warning(f"🎫 {desc.name}: ticket limit {self.max_sequence} reached")
                raise TicketLimitReached(desc.name, self.max_sequence)

        result = TicketResult(service=desc.name, counter_prefix=desc.counter_prefix,
                              raw_sequence=issued,
                              display_number=display_number(desc.counter_prefix, issued))
        logger.info(f"🎫 Ticket {result.display_number} issued for {desc.name}")
        return result

    def call_next(self, service: str) -> CallResult:
        desc = service_registry.resolve(service)
        self._lazy_reset()
        with self.locks.for_service(desc.name):
            with self.store.transaction():
                advanced = self.store.advance_called(desc.name)
                if advanced is None:
                    raise NoCustomerWaiting(desc.name)
                called, issued = advanced
                number = display_number(desc.counter_prefix, called)
                self.history.append(desc.name, number, called, is_recall=False,
                                    called_at=self.clock())
            self.tracker.clear(desc.name)

        waiting = max(0, issued - called)
        logger.info(f"📞 Calling {number} for {desc.name} ({waiting} waiting)")
        return CallResult(service=desc.name, counter_prefix=desc.counter_prefix,
                          raw_sequence=called, display_number=number, waiting_count=waiting,
                          message=f"Now calling number {number} at counter {desc.counter_prefix}")

    def recall_last(self, service: str) -> CallResult:
        desc = service_registry.resolve(service)
        self._lazy_reset()
        with self.locks.for_service(desc.name):
            with self.store.transaction():
                counts = self.store.counts(desc.name)
                if counts is None or counts[1] == 0:
                    raise NothingCalledYet(desc.name)
                issued, called, _ = counts
                number = display_number(desc.counter_prefix, called)
                self.store.touch(desc.name)
                self.history.append(desc.name, number, called, is_recall=True,
                                    called_at=self.clock())
            self.tracker.mark_recall(desc.name)

        logger.info(f"🔁 Recalling {number} for {desc.name}")
        return CallResult(service=desc.name, counter_prefix=desc.counter_prefix,
                          raw_sequence=called, display_number=number,
                          waiting_count=max(0, issued - called),
                          message=f"Recalling number {number} at counter {desc.counter_prefix}",
                          is_recall=True)

    # ── Admin ────────────────────────────────────────────────────────────────
    @contextmanager
    def _all_services_locked(self):
        names = sorted(d.name for d in service_registry.all_services())
        with ExitStack() as stack:
            for name in names:
                stack.enter_context(self.locks.for_service(name))
            yield names

    def reset_all(self) -> int:
        """Manual reset of every counter. History, ratings and the daily marker stay."""
        with self._all_services_locked():
            with self.store.transaction():
                count = self.store.reset_all()
            self.tracker.clear()
        logger.warning(f"🧹 Manual reset: {count} counters zeroed")
        return count

    def wipe_all(self, confirm: Optional[str], token: str = settings.WIPE_CONFIRMATION_TOKEN) -> tuple:
        """Delete all counter rows and recreate empty ones. Needs the exact token."""
        if confirm != token:
            raise ConfirmationRequired()
        with self._all_services_locked() as names:
            with self.store.transaction():
                deleted, created = self.store.wipe_all(names)
            self.tracker.clear()
        logger.warning(f"🗑  Counters wiped: {deleted} deleted, {created} recreated")
        return deleted, created

    # ── Reads (no locks) ─────────────────────────────────────────────────────
    def waiting_count(self, service: str) -> int:
        desc = service_registry.resolve(service)
        record = self.store.get(desc.name)
        return record.waiting_count if record else 0

    def current_calling(self, service: str) -> Optional[CurrentCall]:
        """
        Number to show on public displays, or None.
        A call stays up while people are waiting, or for a short freshness
        window after the queue drains so it does not vanish mid-service.
        The time shown is the last call or recall; issuing tickets does not move it.
        """
        desc = service_registry.resolve(service)
        record = self.store.get(desc.name)
        if record is None or not record.called_count:
            return None
        last = self.history.recent(desc.name, limit=1)
        called_at = last[0].called_at if last else record.last_updated
        fresh = called_at is not None and self.clock() - called_at <= self.freshness
        if record.waiting_count == 0 and not fresh:
            return None
        return CurrentCall(number=display_number(desc.counter_prefix, record.called_count),
                           time=called_at,
                           is_recall=self.tracker.is_recent_recall(desc.name))

    def status(self, service: Optional[str] = None) -> dict:
        """Per-service waiting / last-called snapshot, keyed by canonical name."""
        descriptors = ([service_registry.resolve(service)] if service
                       else service_registry.all_services())
        records = {r.service: r for r in self.store.all()}
        snapshot = {}
        for desc in descriptors:
            record = records.get(desc.name)
            called = record.called_count if record else 0
            issued = record.issued_count if record else 0
            snapshot[desc.name] = {
                "counter_prefix": desc.counter_prefix,
                "waiting": max(0, issued - called),
                "last_called": display_number(desc.counter_prefix, called) if called else None,
                "issued": issued,
                "called": called,
            }
        return snapshot

    def latest_calls(self) -> dict:
        return {
            desc.name: self.current_calling(desc.name)
            for desc in service_registry.all_services()
        }
