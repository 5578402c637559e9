"""
Recall/Recency Tracker — short-lived, in-memory recall markers per service.

Kiosk displays poll the latest calls; a marker younger than the window tells
them the number on screen is being re-announced, not freshly called. Markers
are process-local and vanish on restart, which only affects display wording.
"""

import threading
import time
from typing import Callable

from app.config import settings


class RecallTracker:
    def __init__(self, window_seconds: float = settings.RECALL_WINDOW_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.clock = clock
        self._marks = {}
        self._lock = threading.Lock()

    def mark_recall(self, service: str) -> None:
        with self._lock:
            self._marks[service] = self.clock()

    def is_recent_recall(self, service: str) -> bool:
        with self._lock:
            marked_at = self._marks.get(service)
            if marked_at is None:
                return False
            if self.clock() - marked_at < self.window_seconds:
                return True
            del self._marks[service]
            return False

    def clear(self, service: str = None) -> None:
        with self._lock:
            if service is None:
                self._marks.clear()
            else:
                self._marks.pop(service, None)


recall_tracker = RecallTracker()
