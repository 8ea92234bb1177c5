"""
Per-connection fixed-window rate limiting
"""

import time
from typing import Callable, Dict
from .models import RateLimitEntry
from .constants import RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_EVENTS
from .logger import log_security_event


class RateLimiter:
    """Admits at most ``max_events`` events per connection per window"""

    def __init__(
        self,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_events: int = RATE_LIMIT_MAX_EVENTS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.window_seconds = window_seconds
        self.max_events = max_events
        self._clock = clock
        # connection_id -> RateLimitEntry
        self._entries: Dict[str, RateLimitEntry] = {}

    def admit(self, connection_id: str) -> bool:
        """
        Decide whether an event from this connection may proceed

        Args:
            connection_id: Connection identifier

        Returns:
            True if admitted, False if the current window is exhausted
        """
        now = self._clock()
        entry = self._entries.get(connection_id)

        if entry is None:
            entry = RateLimitEntry(count=0, reset_time=now + self.window_seconds)
            self._entries[connection_id] = entry

        if now > entry.reset_time:
            entry.count = 0
            entry.reset_time = now + self.window_seconds

        if entry.count >= self.max_events:
            log_security_event("rate_limit_exceeded", {
                "connection_id": connection_id,
                "max_events": self.max_events,
                "window_seconds": self.window_seconds
            })
            return False

        entry.count += 1
        return True

    def forget(self, connection_id: str):
        """Drop the entry for a disconnected connection"""
        self._entries.pop(connection_id, None)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
