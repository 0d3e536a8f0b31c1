import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from image_server.logger_config import setup_logger

logger = setup_logger()


class StoreMonitor:
    """Sliding-window failure counts per object store operation.

    Each operation (put, get, head, read) keeps its own window. When the
    failures of one operation inside the window reach the threshold, the
    alert handler is called once with the operation and the key that tipped
    it over; the alert re-arms after a success or once the window drains.
    """

    def __init__(self, failure_threshold: int, window_seconds: int = 60,
                 alert_handler: Optional[Callable[[str], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        if failure_threshold <= 0:
            raise ValueError("Failure threshold must be positive")
        if window_seconds <= 0:
            raise ValueError("Window seconds must be positive")

        self._failure_threshold = failure_threshold
        self._window_seconds = window_seconds
        self._alert_handler = alert_handler or logger.critical
        self._clock = clock
        self._failures: Dict[str, Deque[float]] = defaultdict(deque)
        self._alerted = set()

    def _expire(self, operation: str) -> Deque[float]:
        failures = self._failures[operation]
        cutoff = self._clock() - self._window_seconds
        while failures and failures[0] < cutoff:
            failures.popleft()
        if len(failures) < self._failure_threshold:
            self._alerted.discard(operation)
        return failures

    def record_success(self, operation: str) -> None:
        self._failures[operation].clear()
        self._alerted.discard(operation)

    def record_failure(self, operation: str, key: str) -> int:
        """Record a failed call and return the operation's failures in the window."""
        failures = self._expire(operation)
        failures.append(self._clock())

        if len(failures) >= self._failure_threshold and operation not in self._alerted:
            self._alerted.add(operation)
            self._alert_handler(
                f"Object store alert: {operation} failed {len(failures)} times within "
                f"{self._window_seconds}s, last key {key}"
            )
        return len(failures)

    def window_failures(self, operation: str) -> int:
        return len(self._expire(operation))
