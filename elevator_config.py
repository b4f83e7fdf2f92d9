"""
Elevator Simulation Configuration File

This file contains all configuration parameters for the elevator simulation,
using configurable settings instead of hardcoded constants
"""
import copy
from enum import Enum
from typing import Dict, Any


class SchedulingStrategy(Enum):
    """Elevator scheduling strategy enumeration"""
    LOOK_WITH_DIRECTION = 'look_with_direction'  # LOOK algorithm with deferred same-direction requests


# Default elevator configuration
DEFAULT_ELEVATOR_ID = 1
DEFAULT_START_FLOOR = 0

# Physical timing configuration (seconds)
TRAVEL_BETWEEN_FLOORS_TIME = 0.5  # Time to travel from one floor to the next
PASSENGER_BOARDING_TIME = 0.5     # Time the doors stay open for passengers

# Runtime configuration
ELEVATOR_IDLE_CHECK_INTERVAL = 0.5  # Elevator idle state check interval (seconds)

# Button press event file
DEFAULT_EVENTS_FILE = "button_presses.csv"

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Complete default configuration
DEFAULT_CONFIG = {
    "elevator": {
        "id": DEFAULT_ELEVATOR_ID,
        "start_floor": DEFAULT_START_FLOOR
    },
    "scheduling": {
        "strategy": SchedulingStrategy.LOOK_WITH_DIRECTION.value
    },
    "timing": {
        "travel_between_floors": TRAVEL_BETWEEN_FLOORS_TIME,
        "passenger_boarding": PASSENGER_BOARDING_TIME
    },
    "intervals": {
        "idle_check": ELEVATOR_IDLE_CHECK_INTERVAL
    },
    "events": {
        "file": DEFAULT_EVENTS_FILE
    },
    "logging": {
        "level": LOG_LEVEL,
        "format": LOG_FORMAT
    }
}


def get_config() -> Dict[str, Any]:
    """
    Get elevator simulation configuration

    Returns:
        Dictionary containing complete configuration information. Callers
        may modify it freely without affecting DEFAULT_CONFIG.
    """
    return copy.deepcopy(DEFAULT_CONFIG)
