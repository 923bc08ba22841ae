"""This module provides the clock used to stamp audit entries and ledger postings."""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone


class ClockProvider:
    """Provides strictly increasing, timezone-aware UTC timestamps.

    Wall clocks can step backwards or hand out the same value twice within a
    tight loop. Every timestamp produced here is guaranteed to be later than
    the previous one produced by the same clock, so ordering audit entries and
    ledger transactions by timestamp never produces ties or inversions.

    Args:
        source: An optional callable returning the current time. It defaults
            to `datetime.now(timezone.utc)` and is mainly overridden in tests.
    """

    RESOLUTION = timedelta(microseconds=1)

    def __init__(self, source: Callable[[], datetime] | None = None) -> None:
        """Initializes the clock.

        Args:
            source: The callable used to read the wall-clock time.
        """
        self._source = source or (lambda: datetime.now(timezone.utc))
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Returns the next timestamp.

        Returns:
            A timezone-aware UTC datetime strictly after any previous result.
        """
        with self._lock:
            current = self._source()
            if current.tzinfo is None:
                current = current.replace(tzinfo=timezone.utc)
            else:
                current = current.astimezone(timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + self.RESOLUTION
            self._last = current
            return current
