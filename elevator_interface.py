import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, field_validator


class Direction(Enum):
    """
    Represents a travel direction for requests and scheduling.

    Attributes:
        UP: Travelling upward, or an external up call button
        DOWN: Travelling downward, or an external down call button
        NONE: No direction; an internal (in-car) button, or an idle scheduler
    """
    UP = 'UP'
    DOWN = 'DOWN'
    NONE = 'NONE'


class DoorState(Enum):
    """Door position of the elevator car"""
    OPEN = 'OPEN'
    CLOSED = 'CLOSED'


class ElevatorState(Enum):
    """
    Represents the operational state of the elevator.

    Attributes:
        IDLE: No outstanding requests, polling for work
        TRAVELING: Doors closed, moving one floor at a time toward a destination
        BOARDING: Doors open, passengers entering and leaving
        TERMINATING: Shutdown requested, draining the remaining requests
    """
    IDLE = 'IDLE'
    TRAVELING = 'TRAVELING'
    BOARDING = 'BOARDING'
    TERMINATING = 'TERMINATING'


class Button(BaseModel):
    """
    Model representing an elevator button.

    Buttons compare and hash by value. A direction of NONE is an internal
    button inside the car; UP and DOWN are external hall call buttons.

    Attributes:
        floor: The floor the button belongs to
        direction: Direction of the button (default: NONE)
    """
    model_config = ConfigDict(frozen=True)

    floor: int
    direction: Direction = Direction.NONE

    @field_validator('floor', mode='before')
    @classmethod
    def validate_floor(cls, v: Any) -> int:
        """
        Validate that floor is an integer.

        Raises:
            ValueError: If floor is not an integer
        """
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError("Floor must be an integer")
        return v

    @field_validator('direction', mode='before')
    @classmethod
    def validate_direction(cls, v: Any) -> Any:
        """Accept direction names in any case, e.g. 'up' or ' DOWN '."""
        if isinstance(v, str):
            try:
                return Direction[v.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown direction: {v!r}") from None
        return v

    @property
    def is_internal(self) -> bool:
        return self.direction == Direction.NONE


@dataclass(frozen=True, eq=False)
class Request:
    """
    Data class representing one unsatisfied trip intent.

    Requests compare by identity: two requests for the same floor and
    direction are still distinct trips.

    Attributes:
        floor_number: The floor the car has to travel to
        desired_direction: Direction the passenger wants to go (NONE for internal presses)
        time_created: Monotonic timestamp (seconds) of the accepted button press
    """
    floor_number: int
    desired_direction: Direction = Direction.NONE
    time_created: float = field(default_factory=time.monotonic)

    @classmethod
    def from_button(cls, button: Button) -> "Request":
        return cls(floor_number=button.floor, desired_direction=button.direction)


class RequestScheduler(Protocol):
    """
    Protocol defining the interface for request scheduling.

    The elevator controller only talks to its scheduler through these
    methods, so dispatch policies can be swapped without touching the
    controller. Every operation must be atomic with respect to the others.
    """
    def add_request(self, request: Request) -> None:
        """Take ownership of a newly accepted request"""
        ...

    def remove_request(self, request: Request) -> None:
        """Drop a request that the elevator has satisfied"""
        ...

    def get_current_request(self) -> Optional[Request]:
        """Return, without removing, the request the car should travel to next"""
        ...

    def has_requests(self) -> bool:
        """Return True while there is outstanding work"""
        ...
