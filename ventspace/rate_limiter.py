"""
Per-client posting cooldown.

Each client may post once per cooldown window. The last permitted
submission time is tracked per client identifier; stale entries are
collected lazily once the table grows past a threshold.
"""

import logging
import threading
import time
from typing import Callable, Dict

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 5.0
MAX_TRACKED_CLIENTS = 1000
STALE_AFTER_SECONDS = 3600.0


class RateLimiter:
    """Cooldown tracker keyed by client identifier."""

    def __init__(
        self,
        *,
        cooldown_seconds: float = COOLDOWN_SECONDS,
        max_tracked_clients: int = MAX_TRACKED_CLIENTS,
        stale_after_seconds: float = STALE_AFTER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self.max_tracked_clients = max_tracked_clients
        self.stale_after_seconds = stale_after_seconds
        self.clock = clock
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._last_seen)

    def check_and_record(self, client_id: str) -> bool:
        """
        Allow the client and record now, or refuse if still cooling down.

        Returns:
            True if the submission may proceed
        """
        with self._lock:
            now = self.clock()
            last = self._last_seen.get(client_id)
            if last is not None and now - last < self.cooldown_seconds:
                return False

            self._last_seen[client_id] = now
            if len(self._last_seen) > self.max_tracked_clients:
                self._collect_stale(now)
        return True

    def retry_after(self, client_id: str) -> float:
        """Seconds until the client may post again (0 if it may now)."""
        with self._lock:
            last = self._last_seen.get(client_id)
            if last is None:
                return 0.0
            return max(0.0, self.cooldown_seconds - (self.clock() - last))

    def _collect_stale(self, now: float) -> None:
        # Caller holds the lock
        cutoff = now - self.stale_after_seconds
        stale = [key for key, seen in self._last_seen.items() if seen < cutoff]
        for key in stale:
            del self._last_seen[key]
        if stale:
            logger.debug(f"Rate limiter dropped {len(stale)} stale clients, tracking {len(self._last_seen)}")
