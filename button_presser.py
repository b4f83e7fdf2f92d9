"""
Timed button press driver.

Reads button press events from a CSV file with one ``floor, direction,
delay_ms`` record per line and replays them against an elevator. Each delay
is measured from the previous event, not from the start of the run.
"""
import asyncio
import csv
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from elevator_config import get_config
from elevator_controller import ElevatorController
from elevator_interface import Direction

CONFIG = get_config()

EXPECTED_FIELDS = 3


class ButtonPressEvent(BaseModel):
    """
    Model representing one scheduled button press.

    Attributes:
        floor: The floor whose button is pressed
        direction: NONE for an internal button, UP or DOWN for a hall call
        delay_ms: Milliseconds to wait after the previous event before pressing
    """
    floor: int
    direction: Direction
    delay_ms: int = Field(ge=0)

    @field_validator('direction', mode='before')
    @classmethod
    def validate_direction(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


def load_events(path: str, logger: Optional[logging.Logger] = None) -> List[ButtonPressEvent]:
    """
    Read every button press event from a CSV file.

    Malformed lines are logged and skipped. A file that cannot be read
    yields no events.

    Args:
        path: Location of the CSV file
        logger: Logger for progress and problems

    Returns:
        The events in file order
    """
    logger = logger or logging.getLogger("ElevatorSystem.button_presser")
    logger.info(f"Reading in file '{path}'...")

    events: List[ButtonPressEvent] = []
    try:
        with open(path, newline='') as csv_file:
            for line_number, row in enumerate(csv.reader(csv_file), start=1):
                if len(row) != EXPECTED_FIELDS:
                    logger.warning(f"Wrong number of fields found on line {line_number}! "
                                   f"Expected {EXPECTED_FIELDS} but got {len(row)}",
                                   extra={"line": line_number, "action": "skip_line"})
                    continue

                floor, direction, delay_ms = (value.strip() for value in row)
                try:
                    events.append(ButtonPressEvent(floor=floor, direction=direction, delay_ms=delay_ms))
                except ValidationError as e:
                    logger.warning(f"Invalid button press on line {line_number}: "
                                   f"{e.error_count()} validation error(s) in {row}",
                                   extra={"line": line_number, "action": "skip_line"})
    except OSError as e:
        logger.critical(f"Could not read file '{path}'! {e}", extra={"action": "read_failed"})
        return []

    logger.info(f"Done reading file. {len(events)} event(s) loaded.")
    return events


class ButtonPresser:
    """
    Replays button press events against an elevator.

    Events are loaded once, up front, when the presser is created.
    """

    def __init__(self, elevator: ElevatorController,
                 events_file: str = CONFIG["events"]["file"],
                 events: Optional[List[ButtonPressEvent]] = None,
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the button presser.

        Args:
            elevator: The elevator to press buttons on
            events_file: CSV file to load events from
            events: Events to replay instead of reading events_file
            logger: Logger for loading and replay messages
        """
        self._elevator = elevator
        self._logger = logger or logging.getLogger("ElevatorSystem.button_presser")
        if events is None:
            events = load_events(events_file, logger=self._logger)
        self._events = list(events)

    @property
    def events(self) -> List[ButtonPressEvent]:
        return list(self._events)

    async def run(self) -> None:
        """Press every button in order, waiting each event's delay first."""
        for event in self._events:
            await asyncio.sleep(event.delay_seconds)

            if event.direction == Direction.NONE:
                self._elevator.press_internal_button(event.floor)
            else:
                self._elevator.press_external_button(event.floor, event.direction)

        self._logger.info(f"All {len(self._events)} button press event(s) fired",
                          extra={"action": "events_done"})
