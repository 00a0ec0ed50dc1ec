"""
Periodic flush driving the aging sweep
"""

import threading
from typing import Callable, Optional
import structlog

log = structlog.get_logger()


class FlushScheduler:
    """
    Calls a flush callback every `interval_seconds` on a daemon timer.

    The callback receives the interval as the elapsed time, so transactions
    age by a fixed step per flush independent of wall-clock jitter.
    """

    def __init__(self, flush: Callable[[float], int], interval_seconds: float = 5):
        """
        Initialize scheduler

        Args:
            flush: Callback taking the elapsed seconds, returning the number expired
            interval_seconds: Seconds between two flushes
        """
        self._flush = flush
        self._interval = interval_seconds
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._shutdown = True

    @property
    def running(self) -> bool:
        return not self._shutdown

    def start(self) -> None:
        """Start periodic flushing"""
        with self._lock:
            if not self._shutdown:
                return
            self._shutdown = False
            self._schedule()
        log.info("flush_scheduler.started", interval_seconds=self._interval)

    def shutdown(self) -> None:
        """Stop flushing and cancel the pending timer"""
        with self._lock:
            self._shutdown = True
            if self._timer:
                self._timer.cancel()
                self._timer = None
        log.info("flush_scheduler.stopped")

    def run_once(self) -> int:
        """Run one flush, logging rather than propagating failures"""
        try:
            return self._flush(self._interval)
        except Exception as e:
            log.error("flush_scheduler.flush_failed", error=str(e), exc_info=True)
            return 0

    def _schedule(self) -> None:
        self._timer = threading.Timer(self._interval, self._run)
        self._timer.daemon = True
        self._timer.start()

    def _run(self) -> None:
        self.run_once()
        with self._lock:
            if not self._shutdown:
                self._schedule()
