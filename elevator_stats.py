import logging
import threading
import time
from typing import Callable, Optional

from elevator_interface import Request


class StatsCollector:
    """
    Collects round-trip latency of completed requests.

    Latency is measured from the moment a request was created until it is
    reported as completed, in whole milliseconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the collector.

        Args:
            clock: Time source in seconds, must match Request.time_created
            logger: Logger to report completions to
        """
        self._clock = clock
        self._logger = logger or logging.getLogger("ElevatorSystem.stats")
        self._lock = threading.Lock()
        self._count = 0
        self._min_ms: Optional[int] = None
        self._max_ms: Optional[int] = None
        self._sum_ms = 0

    def add_completed_request(self, request: Request) -> None:
        elapsed_ms = round((self._clock() - request.time_created) * 1000)
        with self._lock:
            self._count += 1
            self._sum_ms += elapsed_ms
            self._min_ms = elapsed_ms if self._min_ms is None else min(self._min_ms, elapsed_ms)
            self._max_ms = elapsed_ms if self._max_ms is None else max(self._max_ms, elapsed_ms)
        self._logger.debug(f"Request for floor {request.floor_number} completed in {elapsed_ms} ms",
                           extra={"floor": request.floor_number, "elapsed_ms": elapsed_ms})

    @property
    def count(self) -> int:
        return self._count

    @property
    def fastest(self) -> Optional[float]:
        """Fastest completion time in seconds, None before the first completion"""
        with self._lock:
            return None if self._min_ms is None else self._min_ms / 1000

    @property
    def slowest(self) -> Optional[float]:
        """Slowest completion time in seconds, None before the first completion"""
        with self._lock:
            return None if self._max_ms is None else self._max_ms / 1000

    @property
    def average(self) -> Optional[float]:
        """Average completion time in seconds, None before the first completion"""
        with self._lock:
            if self._count == 0:
                return None
            return self._sum_ms / self._count / 1000

    def report(self) -> str:
        def seconds(value: Optional[float]) -> str:
            return "N/A" if value is None else f"{value} seconds"

        return (f"  Total Requests Completed:  {self.count}\n"
                f"  Fastest Completion Time:   {seconds(self.fastest)}\n"
                f"  Slowest Completion Time:   {seconds(self.slowest)}\n"
                f"  Average Completion Time:   {seconds(self.average)}\n")

    def __str__(self) -> str:
        return self.report()
