"""
Elevator Simulation Realistic Scenario Runner

This script replays button presses from a CSV file against a single elevator,
lets the elevator serve every request and prints its completion statistics.
"""
import argparse
import asyncio
import logging
from typing import List, Optional

from button_presser import ButtonPresser
from elevator_config import get_config
from elevator_controller import ElevatorController

TITLE = r"""
 _____ _                 _
|  ___| |               | |
| |__ | | _____   ____ _| |_ ___  _ __
|  __|| |/ _ \ \ / / _` | __/ _ \| '__|
| |___| |  __/\ V / (_| | || (_) | |
\____/|_|\___| \_/ \__,_|\__\___/|_|
 _____ _                 _       _   _
/  ___(_)               | |     | | (_)
\ `--. _ _ __ ___  _   _| | __ _| |_ _  ___  _ __
 `--. \ | '_ ` _ \| | | | |/ _` | __| |/ _ \| '_ \
/\__/ / | | | | | | |_| | | (_| | |_| | (_) | | | |
\____/|_|_| |_| |_|\__,_|_|\__,_|\__|_|\___/|_| |_|
"""

SCORECARD = r"""
 ___  ___ ___  _ __ ___  ___ __ _ _ __ __| |
/ __|/ __/ _ \| '__/ _ \/ __/ _` | '__/ _` |
\__ \ (_| (_) | | |  __/ (_| (_| | | | (_| |
|___/\___\___/|_|  \___|\___\__,_|_|  \__,_|
"""

logger = logging.getLogger("ElevatorSystem")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    config = get_config()
    parser = argparse.ArgumentParser(description="Run the elevator simulation from a button press file.")
    parser.add_argument("--events", default=config["events"]["file"],
                        help="CSV file of 'floor, direction, delay_ms' records")
    parser.add_argument("--start-floor", type=int, default=config["elevator"]["start_floor"],
                        help="Floor the elevator starts on")
    parser.add_argument("--log-level", default=config["logging"]["level"],
                        help="Logging level, e.g. DEBUG or INFO")
    return parser.parse_args(argv)


async def simulate(elevator: ElevatorController, button_presser: ButtonPresser) -> None:
    """Run the elevator until every scheduled button press has been served."""
    elevator_task = asyncio.create_task(elevator.run())
    try:
        await button_presser.run()
    finally:
        elevator.terminate()
        await elevator_task


def print_scorecard(elevator: ElevatorController) -> None:
    print(SCORECARD)
    print(f"Elevator {elevator.get_id()}:")
    print(elevator.get_stats())


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = get_config()
    logging.basicConfig(level=args.log_level.upper(), format=config["logging"]["format"])

    print(TITLE)

    elevator = ElevatorController(elevator_id=config["elevator"]["id"], start_floor=args.start_floor)
    button_presser = ButtonPresser(elevator, events_file=args.events)

    print("\nStarting Elevator Simulation...\n")
    try:
        asyncio.run(simulate(elevator, button_presser))
    except KeyboardInterrupt:
        logger.info("Simulation interrupted, shutting down...")
    finally:
        print_scorecard(elevator)


if __name__ == "__main__":
    main()
