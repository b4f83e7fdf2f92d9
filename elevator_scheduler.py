"""
Request scheduling strategies for the elevator controller.

The default strategy is a directional LOOK variant: the car exhausts every
reachable request in its current direction before reversing. Requests that
want to travel in the current direction but sit behind the car are parked
in a pending queue, which becomes the active queue for that direction once
the active queue drains.
"""
import heapq
import itertools
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from elevator_config import SchedulingStrategy
from elevator_interface import Direction, Request, RequestScheduler


class _JobQueue:
    """Priority queue of requests keyed by floor. Equal floors keep insertion order."""

    def __init__(self, descending: bool = False) -> None:
        self._descending = descending
        self._heap: List[Tuple[int, int, Request]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, request: Request) -> None:
        key = -request.floor_number if self._descending else request.floor_number
        heapq.heappush(self._heap, (key, next(self._counter), request))

    def peek(self) -> Optional[Request]:
        return self._heap[0][2] if self._heap else None

    def remove(self, request: Request) -> bool:
        remaining = [entry for entry in self._heap if entry[2] is not request]
        if len(remaining) == len(self._heap):
            return False
        heapq.heapify(remaining)
        self._heap = remaining
        return True

    def drain(self) -> List[Request]:
        """Remove and return every request, in queue order."""
        requests = [entry[2] for entry in sorted(self._heap)]
        self._heap = []
        return requests

    def floors(self) -> List[int]:
        return [entry[2].floor_number for entry in sorted(self._heap)]


class LookWithDirectionScheduler:
    """
    LOOK scheduling with direction-aware request classification.

    Keeps two active queues (up jobs ascending, down jobs descending) and two
    pending queues with the same orderings. The scheduling direction is NONE
    exactly when both active queues are empty.
    """

    def __init__(self, floor_provider: Callable[[], int],
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the scheduler.

        Args:
            floor_provider: Returns the elevator's current floor. It is read
                on every add_request call, never cached.
            logger: Logger to report scheduling decisions to
        """
        self._floor_provider = floor_provider
        self._logger = logger or logging.getLogger("ElevatorSystem.scheduler")
        self._lock = threading.Lock()

        self._up_jobs = _JobQueue()
        self._down_jobs = _JobQueue(descending=True)
        self._pending_up_jobs = _JobQueue()
        self._pending_down_jobs = _JobQueue(descending=True)

        self._scheduling_direction = Direction.NONE

    @property
    def scheduling_direction(self) -> Direction:
        with self._lock:
            return self._scheduling_direction

    def add_request(self, request: Request) -> None:
        """
        Classify a new request into an active or pending queue.

        UP requests at or above the car (or any UP request while the car is
        not scheduling upward) join the up queue; UP requests behind a car
        already heading up are deferred. DOWN is symmetric. Internal requests
        go to whichever active queue lies on their side of the car.

        Args:
            request: The request to schedule
        """
        with self._lock:
            current_floor = self._floor_provider()
            floor = request.floor_number
            direction = request.desired_direction

            if direction == Direction.UP:
                if floor >= current_floor or self._scheduling_direction != Direction.UP:
                    self._up_jobs.push(request)
                    queue_name = "up"
                else:
                    self._pending_up_jobs.push(request)
                    queue_name = "pending up"
                if self._scheduling_direction == Direction.NONE:
                    self._scheduling_direction = Direction.UP

            elif direction == Direction.DOWN:
                if floor <= current_floor or self._scheduling_direction != Direction.DOWN:
                    self._down_jobs.push(request)
                    queue_name = "down"
                else:
                    self._pending_down_jobs.push(request)
                    queue_name = "pending down"
                if self._scheduling_direction == Direction.NONE:
                    self._scheduling_direction = Direction.DOWN

            else:
                if floor >= current_floor:
                    self._up_jobs.push(request)
                    queue_name = "up"
                    if self._scheduling_direction == Direction.NONE:
                        self._scheduling_direction = Direction.UP
                else:
                    self._down_jobs.push(request)
                    queue_name = "down"
                    if self._scheduling_direction == Direction.NONE:
                        self._scheduling_direction = Direction.DOWN

            self._logger.debug(f"Queued request for floor {floor} ({direction.value}) in {queue_name} jobs "
                               f"from floor {current_floor}, scheduling {self._scheduling_direction.value}",
                               extra={"floor": floor, "direction": direction.value, "queue": queue_name})

    def remove_request(self, request: Request) -> None:
        """
        Remove a satisfied request from the active queue of the current direction.

        When that queue drains, its pending counterpart is promoted into it.
        The direction then flips if the opposite queue has work, or becomes
        NONE if no work is left at all.

        Args:
            request: The request that has been satisfied
        """
        with self._lock:
            if self._scheduling_direction == Direction.UP:
                active, pending, opposite = self._up_jobs, self._pending_up_jobs, self._down_jobs
                direction = Direction.UP
            else:
                active, pending, opposite = self._down_jobs, self._pending_down_jobs, self._up_jobs
                direction = Direction.DOWN

            if not active.remove(request):
                self._logger.warning(f"Request for floor {request.floor_number} was not in the "
                                     f"{direction.value.lower()} jobs queue",
                                     extra={"floor": request.floor_number, "action": "remove_request"})

            if len(active) == 0:
                for deferred in pending.drain():
                    active.push(deferred)

                if len(opposite) > 0:
                    self._scheduling_direction = self._opposite_direction(direction)
                elif len(active) == 0:
                    self._scheduling_direction = Direction.NONE

                self._logger.debug(f"{direction.value} jobs drained, scheduling direction is now "
                                   f"{self._scheduling_direction.value}")

    def get_current_request(self) -> Optional[Request]:
        """
        Return the head of the active queue for the scheduling direction.

        Returns:
            The next request to travel to, or None when there is no work
        """
        with self._lock:
            if self._scheduling_direction == Direction.UP:
                return self._up_jobs.peek()
            return self._down_jobs.peek()

    def has_requests(self) -> bool:
        # Pending queues only hold entries while their active queue is non-empty
        with self._lock:
            return len(self._up_jobs) > 0 or len(self._down_jobs) > 0

    def snapshot(self) -> Dict[str, List[int]]:
        """Floors in every queue, in service order. Intended for diagnostics."""
        with self._lock:
            return {
                "up": self._up_jobs.floors(),
                "down": self._down_jobs.floors(),
                "pending_up": self._pending_up_jobs.floors(),
                "pending_down": self._pending_down_jobs.floors(),
            }

    def __repr__(self) -> str:
        return f"LookWithDirectionScheduler(direction={self.scheduling_direction.value}, jobs={self.snapshot()})"

    @staticmethod
    def _opposite_direction(direction: Direction) -> Direction:
        return Direction.DOWN if direction == Direction.UP else Direction.UP


SCHEDULER_REGISTRY: Dict[SchedulingStrategy, Type[LookWithDirectionScheduler]] = {
    SchedulingStrategy.LOOK_WITH_DIRECTION: LookWithDirectionScheduler,
}


def get_scheduler(strategy: Union[SchedulingStrategy, str],
                  floor_provider: Callable[[], int],
                  logger: Optional[logging.Logger] = None) -> RequestScheduler:
    """
    Build a scheduler for the given strategy.

    Raises:
        ValueError: If the strategy is not registered
    """
    try:
        strategy = SchedulingStrategy(strategy)
    except ValueError:
        available = ', '.join(s.value for s in SCHEDULER_REGISTRY)
        raise ValueError(f"Unknown scheduling strategy '{strategy}'. Available: {available}") from None
    return SCHEDULER_REGISTRY[strategy](floor_provider, logger=logger)
