import threading
import time


class RateLimiter:
    """Thread-safe minimum-interval limiter shared by calls to one platform."""

    def __init__(self, min_interval: float = 0.5):
        self.min_interval = min_interval
        self._last_request_time = 0.0
        self._lock = threading.Lock()

    def wait(self):
        if self.min_interval <= 0:
            return
        with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_request_time = time.monotonic()


_platform_limiters = {}
_registry_lock = threading.Lock()


def get_platform_limiter(platform: str, min_interval: float = 0.5) -> RateLimiter:
    """Get or create the shared rate limiter for a platform.

    The interval of an existing limiter is updated so that a config change
    (e.g. the testing config) takes effect for later clients.
    """
    with _registry_lock:
        limiter = _platform_limiters.get(platform)
        if limiter is None:
            limiter = _platform_limiters[platform] = RateLimiter(min_interval)
        else:
            limiter.min_interval = min_interval
        return limiter
