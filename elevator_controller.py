from typing import Set, Optional, Callable
import asyncio
import logging
import threading

# Import value types and interfaces
from elevator_interface import Button, Direction, DoorState, ElevatorState, Request, RequestScheduler

# Import scheduling and statistics collaborators
from elevator_scheduler import get_scheduler
from elevator_stats import StatsCollector

# Import configuration and constants
from elevator_config import get_config

# Get system configuration
CONFIG = get_config()

SchedulerFactory = Callable[[Callable[[], int]], RequestScheduler]


class Doors:
    """
    Elevator car doors.

    The doors start closed. Closing doors that are already closed does nothing.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("ElevatorSystem.doors")
        self._state = DoorState.CLOSED

    @property
    def state(self) -> DoorState:
        return self._state

    def open(self) -> None:
        self._state = DoorState.OPEN
        self._logger.info("[DOORS] Opening doors.", extra={"action": "doors_open"})

    def close(self) -> None:
        if self._state == DoorState.CLOSED:
            return
        self._state = DoorState.CLOSED
        self._logger.info("[DOORS] Closing doors.", extra={"action": "doors_close"})

    def are_closed(self) -> bool:
        return self._state == DoorState.CLOSED

    def __repr__(self) -> str:
        return f"Doors(state={self._state.value})"


class ElevatorController:
    """
    Elevator controller class responsible for driving a single car.

    The controller deduplicates button presses, hands new requests to its
    scheduler and runs the move/arrive/board cycle. All ordering decisions
    are delegated to the scheduler.
    """

    def __init__(self, elevator_id: int = CONFIG["elevator"]["id"],
                 start_floor: int = CONFIG["elevator"]["start_floor"],
                 scheduling_strategy: str = CONFIG["scheduling"]["strategy"],
                 scheduler_factory: Optional[SchedulerFactory] = None,
                 travel_time: float = CONFIG["timing"]["travel_between_floors"],
                 boarding_time: float = CONFIG["timing"]["passenger_boarding"],
                 idle_check_interval: float = CONFIG["intervals"]["idle_check"],
                 stats_collector: Optional[StatsCollector] = None,
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the elevator controller.

        Args:
            elevator_id: Identifier used to tell elevators apart
            start_floor: Floor the car starts on
            scheduling_strategy: Name of the registered scheduling strategy
            scheduler_factory: Builds the scheduler from a current-floor provider;
                overrides scheduling_strategy when given
            travel_time: Seconds to travel between two adjacent floors
            boarding_time: Seconds the doors stay open at each arrival
            idle_check_interval: Seconds between checks for new work while idle
            stats_collector: Collector for completed request latencies
            logger: Parent logger; each component logs to a child of it
        """
        base_logger = logger or logging.getLogger("ElevatorSystem")
        self._logger = base_logger.getChild("controller")

        self._id = elevator_id
        self._current_floor = start_floor
        self._is_moving = False
        self._state = ElevatorState.IDLE

        self._travel_time = travel_time
        self._boarding_time = boarding_time
        self._idle_check_interval = idle_check_interval

        # Pressed button memory, one set per button kind
        self._lock = threading.Lock()
        self._pressed_internal: Set[int] = set()
        self._pressed_external_up: Set[int] = set()
        self._pressed_external_down: Set[int] = set()

        # Running flag and wake-up signal for the idle loop
        self._running = True
        self._stop_requested = asyncio.Event()

        if scheduler_factory is None:
            self._scheduler = get_scheduler(scheduling_strategy, self.get_current_floor,
                                            logger=base_logger.getChild("scheduler"))
        else:
            self._scheduler = scheduler_factory(self.get_current_floor)
        self._doors = Doors(logger=base_logger.getChild("doors"))
        self._stats = stats_collector or StatsCollector(logger=base_logger.getChild("stats"))

        self._logger.info(f"ElevatorController {elevator_id} initialized at floor {start_floor}",
                          extra={"floor": start_floor, "action": "init"})

    def get_id(self) -> int:
        return self._id

    def get_current_floor(self) -> int:
        # Single attribute read, safe while the travel loop updates it
        return self._current_floor

    def get_stats(self) -> str:
        return self._stats.report()

    @property
    def state(self) -> ElevatorState:
        return self._state

    @property
    def is_moving(self) -> bool:
        return self._is_moving

    @property
    def doors(self) -> Doors:
        return self._doors

    @property
    def scheduler(self) -> RequestScheduler:
        return self._scheduler

    @property
    def stats(self) -> StatsCollector:
        return self._stats

    def press_button(self, button: Button) -> bool:
        """
        Handle a button press from inside the car or from a hall.

        A press for a floor/direction that is already waiting to be served
        is ignored. Otherwise a new request is handed to the scheduler.

        Args:
            button: The pressed button

        Returns:
            True if a new request was created, False if the press was a duplicate
        """
        self._logger.info(f"[BUTTON_PRESS] Pressing button for floor: {button.floor}, "
                          f"direction: {button.direction.value}",
                          extra={"floor": button.floor, "direction": button.direction.value,
                                 "action": "button_press"})

        with self._lock:
            pressed_floors = self._pressed_floors(button.direction)
            already_pressed = button.floor in pressed_floors
            if not already_pressed:
                pressed_floors.add(button.floor)

        if already_pressed:
            self._logger.info(f"[BUTTON_PRESS] Button for floor: {button.floor}, "
                              f"direction: {button.direction.value} is already pressed. Ignoring request.",
                              extra={"floor": button.floor, "direction": button.direction.value,
                                     "action": "button_ignored"})
            return False

        self._scheduler.add_request(Request.from_button(button))
        return True

    def press_internal_button(self, floor: int) -> bool:
        """Press the button for a floor inside the car"""
        return self.press_button(Button(floor=floor))

    def press_external_button(self, floor: int, direction: Direction) -> bool:
        """
        Press a hall call button.

        Raises:
            ValueError: If direction is not UP or DOWN
        """
        if direction not in (Direction.UP, Direction.DOWN):
            raise ValueError(f"External buttons must be UP or DOWN, got {direction}")
        return self.press_button(Button(floor=floor, direction=direction))

    def is_button_pressed(self, button: Button) -> bool:
        with self._lock:
            return button.floor in self._pressed_floors(button.direction)

    def terminate(self) -> None:
        """
        Ask the elevator to stop once all accepted requests are served.

        In-flight travel is not interrupted and queued requests are kept.
        Must be called from the event loop running the elevator.
        """
        self._logger.info(f"Elevator {self._id} terminating, finishing remaining requests",
                          extra={"floor": self._current_floor, "action": "terminate"})
        self._running = False
        if self._state == ElevatorState.IDLE:
            self._state = ElevatorState.TERMINATING
        self._stop_requested.set()

    async def run(self) -> None:
        """
        Run the elevator until terminated and out of work.

        Serves requests while the scheduler has any, otherwise polls for new
        work every idle check interval.
        """
        self._logger.info(f"Elevator {self._id} started at floor {self._current_floor}",
                          extra={"floor": self._current_floor, "action": "start"})

        while self._running or self._scheduler.has_requests():
            if self._scheduler.has_requests():
                await self.process_next_request()
            else:
                await self._wait_for_requests()

        self._logger.info(f"Elevator {self._id} stopped at floor {self._current_floor}",
                          extra={"floor": self._current_floor, "action": "stop"})

    async def process_next_request(self) -> None:
        """
        Travel to the scheduler's current request and serve it.

        After every floor the scheduler is asked again; if it now prefers a
        different request, that request becomes the destination.
        """
        current_request = self._scheduler.get_current_request()
        if current_request is None:
            self._logger.warning("Expected a request to exist, but instead got None.",
                                 extra={"floor": self._current_floor, "action": "invariant_violation"})
            return

        destination_floor = current_request.floor_number
        direction = self._calculate_movement_direction(destination_floor)
        self._logger.info(f"[DESTINATION_CHANGE] Moving elevator in direction {direction.value} "
                          f"to floor {destination_floor}",
                          extra={"floor": destination_floor, "direction": direction.value,
                                 "action": "destination_change"})

        self._doors.close()

        while self._current_floor != destination_floor:
            self._is_moving = True
            self._state = ElevatorState.TRAVELING
            await self._travel_one_floor_towards(destination_floor)

            # Check for a higher priority request that arrived while moving
            new_current_request = self._scheduler.get_current_request()
            if new_current_request is not None and new_current_request is not current_request:
                current_request = new_current_request
                destination_floor = current_request.floor_number
                direction = self._calculate_movement_direction(destination_floor)
                self._logger.info(f"[DESTINATION_CHANGE] Updating elevator to move in direction "
                                  f"{direction.value} to floor {destination_floor}",
                                  extra={"floor": destination_floor, "direction": direction.value,
                                         "action": "destination_change"})
        self._is_moving = False

        await self._arrive_at_destination(current_request)

    async def _arrive_at_destination(self, request: Optional[Request]) -> None:
        """
        Complete a request at its floor and let passengers board.

        Args:
            request: The request that has just been reached
        """
        if request is None:
            self._logger.warning("Expected a request to exist, but instead got None.",
                                 extra={"floor": self._current_floor, "action": "invariant_violation"})
            return

        self._logger.info(f"[ARRIVED] Destination reached. Floor: {request.floor_number}",
                          extra={"floor": request.floor_number,
                                 "direction": request.desired_direction.value, "action": "arrived"})

        self._scheduler.remove_request(request)
        self._stats.add_completed_request(request)
        self._clear_button_press(request.floor_number, request.desired_direction)

        self._state = ElevatorState.BOARDING
        self._doors.open()
        # Simulate the time to wait for passengers to load
        await asyncio.sleep(self._boarding_time)
        self._doors.close()
        self._state = ElevatorState.IDLE if self._running else ElevatorState.TERMINATING

    async def _travel_one_floor_towards(self, destination_floor: int) -> None:
        """
        Move the car one floor closer to the destination.

        Args:
            destination_floor: Floor the car is heading to
        """
        if destination_floor == self._current_floor:
            self._logger.info(f"Destination floor ({destination_floor}) and current floor "
                              f"({self._current_floor}) are the same. Elevator will not move.")
            return

        # Simulate the time it takes to move between floors
        await asyncio.sleep(self._travel_time)

        if self._current_floor < destination_floor:
            self._current_floor += 1
        else:
            self._current_floor -= 1

        self._logger.info(f"[MOVING] Current floor is now: {self._current_floor}, "
                          f"destination floor is: {destination_floor}",
                          extra={"floor": self._current_floor, "action": "moving"})

    async def _wait_for_requests(self) -> None:
        """Sleep one idle check interval, returning early if termination is requested."""
        self._state = ElevatorState.IDLE if self._running else ElevatorState.TERMINATING
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=self._idle_check_interval)
        except asyncio.TimeoutError:
            return
        self._logger.info("Elevator waiting for requests loop interrupted!",
                          extra={"floor": self._current_floor, "action": "idle_interrupted"})

    def _calculate_movement_direction(self, destination_floor: int) -> Direction:
        if destination_floor > self._current_floor:
            return Direction.UP
        elif destination_floor < self._current_floor:
            return Direction.DOWN
        return Direction.NONE

    def _pressed_floors(self, direction: Direction) -> Set[int]:
        """Return the pressed button set for a button direction. Caller holds the lock."""
        if direction == Direction.UP:
            return self._pressed_external_up
        elif direction == Direction.DOWN:
            return self._pressed_external_down
        return self._pressed_internal

    def _clear_button_press(self, floor: int, direction: Direction) -> None:
        with self._lock:
            self._pressed_floors(direction).discard(floor)

    def __repr__(self) -> str:
        return (f"ElevatorController(id={self._id}, current_floor={self._current_floor}, "
                f"is_moving={self._is_moving}, state={self._state.value}, doors={self._doors!r}, "
                f"travel_time={self._travel_time}, boarding_time={self._boarding_time}, "
                f"idle_check_interval={self._idle_check_interval})")
