"""
Daily Reset Scheduler — zero all counters once per local calendar day.

Two triggers share one idempotent entry point, reset_if_new_day():
  - a timer task that wakes just after local midnight (run_reset_loop)
  - a lazy fallback evaluated on ticket / call traffic (lazy_reset), which
    catches a midnight the timer missed (process down, laptop asleep, ...)

The persisted ResetState "lastResetDay" row is the only gate: whichever
trigger runs first for a new day resets and advances the marker, every later
run that day is a no-op. On a database with no marker yet the row is
initialised to today WITHOUT resetting, so a freshly seeded DB keeps its counts.
History and ratings are never touched.
"""

import asyncio
import threading
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.config import settings
from app.models.reset_state import LAST_RESET_DAY_KEY, ResetState
from app.services.counter_store import CounterStore
from app.services.errors import StorageUnavailable
from app.utils.logger import get_logger

logger = get_logger(__name__)


class DailyResetScheduler:
    def __init__(self, timezone: str = settings.TIMEZONE,
                 today_fn: Optional[Callable[[], date]] = None):
        self.tz = ZoneInfo(timezone)
        self.today_fn = today_fn or (lambda: datetime.now(self.tz).date())
        self._lock = threading.Lock()
        self._checked_day = None     # Skip the DB round-trip once today is settled

    def reset_if_new_day(self, session: Session, today: Optional[date] = None) -> bool:
        """Reset counters if the marker is from an earlier day. Returns True if a reset ran."""
        today = today or self.today_fn()
        if self._checked_day == today:
            return False
        with self._lock:
            if self._checked_day == today:
                return False
            did_reset = self._apply(session, today)
            self._checked_day = today
            return did_reset

    def _apply(self, session: Session, today: date) -> bool:
        store = CounterStore(session)
        with store.transaction():
            state = session.get(ResetState, LAST_RESET_DAY_KEY,
                                populate_existing=True, with_for_update=True)
            if state is None:
                session.add(ResetState(key=LAST_RESET_DAY_KEY, value=today.isoformat(),
                                       updated_at=datetime.utcnow()))
                logger.info(f"🗓  Reset marker initialised to {today} (no reset on first run)")
                return False
            if state.value == today.isoformat():
                return False
            count = store.reset_all()
            previous = state.value
            state.value = today.isoformat()
            state.updated_at = datetime.utcnow()
        logger.info(f"🔄 Daily reset: {count} counters zeroed (last reset {previous}, today {today})")
        return True

    def lazy_reset(self, session: Session) -> bool:
        """Fallback trigger for request paths. Never raises; storage errors are logged."""
        try:
            return self.reset_if_new_day(session)
        except StorageUnavailable as e:
            logger.error(f"Lazy daily reset failed, will retry on next request: {e}")
            return False

    def last_reset_day(self, session: Session) -> Optional[str]:
        state = session.get(ResetState, LAST_RESET_DAY_KEY)
        return state.value if state else None

    def seconds_until_midnight(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(self.tz)
        next_midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=self.tz)
        return max(0.0, (next_midnight - now).total_seconds())

    def run_scheduled(self, session_factory) -> bool:
        """One timer tick with its own session."""
        session = session_factory()
        try:
            return self.reset_if_new_day(session)
        finally:
            session.close()


reset_scheduler = DailyResetScheduler()


async def run_reset_loop(scheduler: DailyResetScheduler, session_factory):
    """
    Sleep until just after local midnight, reset, repeat.
    Started once at backend startup; cancelled on shutdown.
    """
    logger.info(f"⏰ Daily reset timer started ({scheduler.tz.key})")
    while True:
        delay = scheduler.seconds_until_midnight() + 1
        logger.debug(f"Next daily reset check in {delay:.0f}s")
        await asyncio.sleep(delay)
        try:
            await asyncio.to_thread(scheduler.run_scheduled, session_factory)
        except Exception as e:
            logger.error(f"Scheduled daily reset failed: {e}", exc_info=True)
