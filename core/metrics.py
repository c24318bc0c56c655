"""
core/metrics.py -- Request hit counter for the admin metrics page.

The counter is owned by the application (one instance on app.state, created in
lifespan) and passed to whoever needs it. There is no module-level counter, so
each app instance and each test client starts from zero.

Request handlers run concurrently in the threadpool and on the event loop, so
every read-modify-write happens under a lock.
"""

import threading


class HitCounter:
    """Thread-safe monotonically increasing counter with an explicit reset."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0

    def increment(self) -> int:
        """Add one hit and return the new total."""
        with self._lock:
            self._hits += 1
            return self._hits

    @property
    def value(self) -> int:
        with self._lock:
            return self._hits

    def reset(self) -> None:
        with self._lock:
            self._hits = 0
