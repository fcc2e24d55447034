"""
Query Scheduler

Drives one scan: starts every server and sends one query burst, then
ticks at a fixed interval for progress reporting until the tick budget is
spent, then tells every server to stop.

States: idle -> running -> finished. An instance runs once. A scheduler
cancelled before it starts never runs.

Tick arithmetic:
    interval  = max(100ms, duration_ms // ticks)
    tick i    -> listener(remaining_ms=(ticks - i) * interval, finished=False)
    afterward -> listener(0, True)
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional

from .server import QueryServer

logger = logging.getLogger(__name__)

MIN_INTERVAL_MS = 100

# (remaining_ms, finished) -> None
TickListener = Callable[[int, bool], None]


class QueryScheduler:

    def __init__(self, servers: Iterable[QueryServer], duration_ms: int = 10000,
                 ticks: int = 20, listener: Optional[TickListener] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        """
        Args:
            servers: Servers to start, query and stop
            duration_ms: Total scan budget in milliseconds
            ticks: Number of progress ticks
            listener: Called with (remaining_ms, finished)
            sleep: Replacement for the interval wait (seconds); by default
                   the wait ends early on cancel()
        """
        if ticks < 1:
            raise ValueError(f"ticks must be positive, got {ticks}")
        if duration_ms < 0:
            raise ValueError(f"duration_ms must not be negative, got {duration_ms}")

        self.servers: List[QueryServer] = list(servers)
        self.duration_ms = duration_ms
        self.ticks = ticks
        self.listener = listener
        self._sleep = sleep

        self._running = False
        self._used = False
        self._cancelled = threading.Event()
        self._state_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_ms(self) -> int:
        return max(MIN_INTERVAL_MS, self.duration_ms // self.ticks)

    def is_running(self) -> bool:
        return self._running

    def is_active(self) -> bool:
        """True until the final notification is sent and every server is stopped."""
        thread = self._thread
        if thread is not None:
            return thread.is_alive()
        return self._running

    def cancel(self):
        """Stop at the next tick boundary (still sends the final notification)."""
        self._running = False
        self._cancelled.set()

    def start(self) -> bool:
        """
        Run the scan on a daemon thread.

        Returns:
            False if this scheduler has already been started or was
            cancelled before starting
        """
        if not self._claim():
            return False
        thread = threading.Thread(target=self._run, name="QueryScheduler", daemon=True)
        thread.start()
        self._thread = thread
        return True

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for a started scan; returns True once it has finished."""
        if self._thread is None:
            return not self._running
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def run(self):
        """Run the scan on the calling thread."""
        if not self._claim():
            logger.warning("Scheduler already used or cancelled, ignoring run()")
            return
        self._run()

    def _claim(self) -> bool:
        with self._state_lock:
            if self._used or self._cancelled.is_set():
                return False
            self._used = True
            self._running = True
            return True

    def _wait(self, seconds: float):
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            self._cancelled.wait(seconds)

    def _notify(self, remaining_ms: int, finished: bool):
        if self.listener is None:
            return
        try:
            self.listener(remaining_ms, finished)
        except Exception as e:
            logger.error(f"Tick listener error: {e}", exc_info=True)

    def _run(self):
        interval = self.interval_ms
        logger.info(f"Scan started: {self.ticks} ticks every {interval}ms")

        try:
            for server in self.servers:
                server.start()
                server.send_queries()

            for i in range(self.ticks):
                if not self._running:
                    break
                self._wait(interval / 1000.0)
                if not self._running:
                    break
                self._notify((self.ticks - i) * interval, False)
        finally:
            self._running = False
            self._notify(0, True)
            for server in self.servers:
                server.stop()
            logger.info("Scan finished")
