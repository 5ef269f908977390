from collections import deque
from datetime import UTC, datetime, timedelta
from threading import Lock


class SlidingWindowRateLimiter:
    """In-process limiter keyed by caller; sync endpoints share it across threadpool workers."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)
        self._hits: dict[str, deque[datetime]] = {}
        self._lock = Lock()

    def _prune(self, now: datetime) -> None:
        for key in list(self._hits):
            bucket = self._hits[key]
            while bucket and now - bucket[0] > self.window:
                bucket.popleft()
            if not bucket:
                del self._hits[key]

    def hit(self, key: str) -> bool:
        now = datetime.now(UTC)
        with self._lock:
            self._prune(now)
            bucket = self._hits.setdefault(key, deque())
            if len(bucket) >= self.max_requests:
                return False

            bucket.append(now)
            return True

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)
