import unittest
import asyncio
import os
import random
import tempfile
from typing import List
from unittest.mock import MagicMock

from pydantic import ValidationError

from button_presser import ButtonPressEvent, ButtonPresser, load_events
from elevator_config import SchedulingStrategy, get_config
from elevator_controller import Doors, ElevatorController
from elevator_interface import Button, Direction, DoorState, ElevatorState, Request
from elevator_scheduler import LookWithDirectionScheduler, get_scheduler
from elevator_stats import StatsCollector
from run_realistic_scenario import parse_args, simulate

NONE = Direction.NONE
UP = Direction.UP
DOWN = Direction.DOWN


def arrived_floors(log_output: List[str]) -> List[int]:
    """Extract the floors of [ARRIVED] log lines, in order"""
    return [int(line.rsplit("Floor: ", 1)[1]) for line in log_output if "[ARRIVED]" in line]


def make_controller(start_floor: int = 0, idle_check_interval: float = 0.01, **kwargs) -> ElevatorController:
    """Controller with no travel or boarding delay"""
    return ElevatorController(start_floor=start_floor, travel_time=0, boarding_time=0,
                              idle_check_interval=idle_check_interval, **kwargs)


class TestConfig(unittest.TestCase):
    """Unit test class for configuration"""

    def test_get_config_returns_independent_copy(self):
        """Test modifying a returned config leaves later configs untouched"""
        config = get_config()
        config["timing"]["travel_between_floors"] = 99
        self.assertNotEqual(get_config()["timing"]["travel_between_floors"], 99)

    def test_default_strategy_is_registered(self):
        """Test the default scheduling strategy name is a known strategy"""
        strategy = SchedulingStrategy(get_config()["scheduling"]["strategy"])
        self.assertEqual(strategy, SchedulingStrategy.LOOK_WITH_DIRECTION)


class TestButton(unittest.TestCase):
    """Unit test class for buttons"""

    def test_equality_by_value(self):
        """Test buttons compare by floor and direction"""
        button1 = Button(floor=1, direction=NONE)
        button2 = Button(floor=1, direction=NONE)
        button3 = Button(floor=1, direction=NONE)

        self.assertEqual(button1, button1)
        self.assertEqual(button1, button2)
        self.assertEqual(button2, button1)
        self.assertEqual(button2, button3)
        self.assertEqual(button1, button3)
        self.assertEqual(hash(button1), hash(button2))

        self.assertNotEqual(button1, Button(floor=1, direction=UP))
        self.assertNotEqual(button1, Button(floor=2, direction=NONE))
        self.assertNotEqual(button1, None)

    def test_default_direction_is_internal(self):
        """Test a button without direction is an internal button"""
        self.assertTrue(Button(floor=4).is_internal)
        self.assertFalse(Button(floor=4, direction=DOWN).is_internal)

    def test_direction_names_are_case_insensitive(self):
        """Test direction strings are normalised"""
        self.assertEqual(Button(floor=3, direction="up").direction, UP)
        self.assertEqual(Button(floor=3, direction=" Down ").direction, DOWN)

    def test_invalid_values_are_rejected(self):
        """Test invalid floors and directions raise validation errors"""
        with self.assertRaises(ValidationError):
            Button(floor="three")
        with self.assertRaises(ValidationError):
            Button(floor=2.5)
        with self.assertRaises(ValidationError):
            Button(floor=3, direction="sideways")

    def test_buttons_are_immutable(self):
        """Test buttons cannot be changed after creation"""
        button = Button(floor=3)
        with self.assertRaises(ValidationError):
            button.floor = 4


class TestRequest(unittest.TestCase):
    """Unit test class for requests"""

    def test_from_button(self):
        """Test a request copies floor and direction from its button"""
        request = Request.from_button(Button(floor=7, direction=DOWN))
        self.assertEqual(request.floor_number, 7)
        self.assertEqual(request.desired_direction, DOWN)

    def test_requests_compare_by_identity(self):
        """Test two requests for the same floor are distinct"""
        first = Request(3, UP, time_created=1.0)
        second = Request(3, UP, time_created=1.0)
        self.assertNotEqual(first, second)
        self.assertEqual(first, first)


class TestDoors(unittest.TestCase):
    """Unit test class for doors"""

    def setUp(self):
        self.doors = Doors()

    def test_doors_start_closed(self):
        self.assertTrue(self.doors.are_closed())
        self.assertEqual(self.doors.state, DoorState.CLOSED)

    def test_doors_open(self):
        self.doors.open()
        self.assertFalse(self.doors.are_closed())

    def test_doors_close(self):
        self.doors.open()
        self.doors.close()
        self.assertTrue(self.doors.are_closed())

    def test_closing_closed_doors_is_a_no_op(self):
        """Test closing already closed doors logs nothing"""
        with self.assertNoLogs("ElevatorSystem.doors", level="INFO"):
            self.doors.close()
        self.assertTrue(self.doors.are_closed())


class TestLookWithDirectionScheduler(unittest.TestCase):
    """Unit test class for the LOOK with direction scheduler"""

    def setUp(self):
        self.floor = 0
        self.scheduler = LookWithDirectionScheduler(lambda: self.floor)

    def serve_all(self) -> List[int]:
        """Take and remove requests until the scheduler is empty"""
        served = []
        while self.scheduler.has_requests():
            request = self.scheduler.get_current_request()
            served.append(request.floor_number)
            self.scheduler.remove_request(request)
        return served

    def test_has_requests(self):
        """Test has_requests reflects added requests"""
        self.assertFalse(self.scheduler.has_requests())
        self.assertIsNone(self.scheduler.get_current_request())

        self.scheduler.add_request(Request(1))
        self.assertTrue(self.scheduler.has_requests())

    def test_scheduling_direction(self):
        """Test the direction chosen by a first request and reset after its removal"""
        cases = [
            (0, 4, NONE, UP),
            (0, -2, UP, UP),
            (0, 0, UP, UP),
            (5, 10, NONE, UP),
            (5, 10, UP, UP),
            (0, -2, NONE, DOWN),
            (0, 3, DOWN, DOWN),
            (0, 0, DOWN, DOWN),
            (10, 5, NONE, DOWN),
            (10, 5, DOWN, DOWN),
            (0, 0, NONE, UP),
        ]
        for start_floor, requested_floor, direction, expected in cases:
            with self.subTest(start=start_floor, floor=requested_floor, direction=direction):
                scheduler = LookWithDirectionScheduler(lambda: start_floor)
                self.assertEqual(scheduler.scheduling_direction, NONE)

                scheduler.add_request(Request(requested_floor, direction))
                self.assertEqual(scheduler.scheduling_direction, expected)

                scheduler.remove_request(scheduler.get_current_request())
                self.assertEqual(scheduler.scheduling_direction, NONE)

    def test_floor_scheduling(self):
        """Test the order requests are served in"""
        cases = [
            ("going down", 10, [5, 7, 3, 1, 2, 9], NONE, [9, 7, 5, 3, 2, 1]),
            ("going up", 0, [5, 7, 3, 1, 2, 9], NONE, [1, 2, 3, 5, 7, 9]),
            ("going up then down", 5, [6, 7, 3, 1, -2, 9], NONE, [6, 7, 9, 3, 1, -2]),
            ("going down then up", 5, [3, 5, 7, -1, 2, 9], NONE, [3, 2, -1, 5, 7, 9]),
            ("going down with direction", 10, [5, 7, 3, 1, 2, 9], DOWN, [9, 7, 5, 3, 2, 1]),
            ("going up with direction", 0, [5, 7, 3, 1, 2, 9], UP, [1, 2, 3, 5, 7, 9]),
        ]
        for name, start_floor, floors, direction, expected_order in cases:
            with self.subTest(name):
                self.floor = start_floor
                self.scheduler = LookWithDirectionScheduler(lambda: self.floor)
                for floor in floors:
                    self.scheduler.add_request(Request(floor, direction))
                self.assertEqual(self.serve_all(), expected_order)

    def test_up_request_behind_car_is_deferred(self):
        """Test an UP request below a car heading up waits for the up queue to drain"""
        self.scheduler.add_request(Request(5, UP))
        self.floor = 3
        behind = Request(1, UP)
        self.scheduler.add_request(behind)

        self.assertEqual(self.scheduler.snapshot()["pending_up"], [1])
        self.assertEqual(self.scheduler.get_current_request().floor_number, 5)

        # New work ahead of the car is still served first
        self.scheduler.add_request(Request(4, UP))
        self.assertEqual(self.scheduler.get_current_request().floor_number, 4)
        self.scheduler.remove_request(self.scheduler.get_current_request())
        self.assertEqual(self.scheduler.get_current_request().floor_number, 5)

        self.floor = 5
        self.scheduler.remove_request(self.scheduler.get_current_request())
        self.assertIs(self.scheduler.get_current_request(), behind)
        self.assertEqual(self.scheduler.scheduling_direction, UP)
        self.assertEqual(self.scheduler.snapshot()["pending_up"], [])

    def test_down_request_behind_car_is_deferred(self):
        """Test a DOWN request above a car heading down waits for the down queue to drain"""
        self.floor = 10
        self.scheduler.add_request(Request(2, DOWN))
        self.floor = 6
        self.scheduler.add_request(Request(8, DOWN))
        self.scheduler.add_request(Request(4, DOWN))

        self.assertEqual(self.scheduler.snapshot()["pending_down"], [8])
        self.assertEqual(self.serve_all(), [4, 2, 8])

    def test_pending_work_waits_for_opposite_direction(self):
        """Test the direction flips to the opposite queue before pending work is served"""
        self.scheduler.add_request(Request(6, UP))
        self.floor = 4
        self.scheduler.add_request(Request(2, UP))
        self.scheduler.add_request(Request(1, DOWN))

        self.assertEqual(self.scheduler.snapshot(),
                         {"up": [6], "down": [1], "pending_up": [2], "pending_down": []})

        self.floor = 6
        self.scheduler.remove_request(self.scheduler.get_current_request())
        self.assertEqual(self.scheduler.scheduling_direction, DOWN)
        self.assertEqual(self.scheduler.snapshot()["up"], [2])
        self.assertEqual(self.serve_all(), [1, 2])

    def test_internal_requests_split_around_car(self):
        """Test internal requests go to the queue on their side of the car"""
        self.floor = 5
        self.scheduler.add_request(Request(5))
        self.scheduler.add_request(Request(4))
        snapshot = self.scheduler.snapshot()
        self.assertEqual(snapshot["up"], [5])
        self.assertEqual(snapshot["down"], [4])

    def test_removing_unknown_request_logs_warning(self):
        """Test removing a request that was never scheduled is reported"""
        self.scheduler.add_request(Request(3))
        with self.assertLogs("ElevatorSystem.scheduler", level="WARNING"):
            self.scheduler.remove_request(Request(3))
        self.assertTrue(self.scheduler.has_requests())

    def test_random_traffic_properties(self):
        """Test ordering and bookkeeping invariants under random traffic with a moving car"""
        rng = random.Random(20240611)
        added = []
        served = []
        sweep_direction = None
        last_floor = None

        for step in range(50000):
            if len(added) < 300 and rng.random() < 0.3:
                request = Request(rng.randint(-5, 20), rng.choice(list(Direction)))
                self.scheduler.add_request(request)
                added.append(request)

            snapshot = self.scheduler.snapshot()
            direction = self.scheduler.scheduling_direction
            # Direction is NONE exactly when both active queues are empty
            self.assertEqual(direction == NONE, not (snapshot["up"] or snapshot["down"]))
            self.assertEqual(self.scheduler.has_requests(), bool(snapshot["up"] or snapshot["down"]))
            # Pending queues only hold work while their active queue has work
            if not snapshot["up"]:
                self.assertEqual(snapshot["pending_up"], [])
            if not snapshot["down"]:
                self.assertEqual(snapshot["pending_down"], [])

            request = self.scheduler.get_current_request()
            if request is None:
                if len(added) == 300:
                    break
                continue
            if self.floor != request.floor_number:
                self.floor += 1 if request.floor_number > self.floor else -1
                continue

            if direction != sweep_direction:
                sweep_direction = direction
                last_floor = None
            if last_floor is not None:
                if direction == UP:
                    self.assertGreaterEqual(request.floor_number, last_floor)
                else:
                    self.assertLessEqual(request.floor_number, last_floor)
            last_floor = request.floor_number

            active = snapshot["up"] if direction == UP else snapshot["down"]
            served.append(request)
            self.scheduler.remove_request(request)
            if len(active) == 1:
                # Active queue drained; promoted pending work starts a new sweep
                last_floor = None

        self.assertFalse(self.scheduler.has_requests())
        self.assertEqual(len(served), len(added))
        self.assertEqual({id(r) for r in served}, {id(r) for r in added})

    def test_get_scheduler(self):
        """Test strategies are built by name and unknown names are rejected"""
        scheduler = get_scheduler("look_with_direction", lambda: 0)
        self.assertIsInstance(scheduler, LookWithDirectionScheduler)
        scheduler = get_scheduler(SchedulingStrategy.LOOK_WITH_DIRECTION, lambda: 0)
        self.assertIsInstance(scheduler, LookWithDirectionScheduler)
        with self.assertRaises(ValueError):
            get_scheduler("sstf", lambda: 0)


class TestStatsCollector(unittest.TestCase):
    """Unit test class for statistics"""

    def test_empty_report(self):
        """Test statistics before any request completed"""
        stats = StatsCollector()
        report = stats.report()

        self.assertEqual(stats.count, 0)
        self.assertIsNone(stats.fastest)
        self.assertIsNone(stats.average)
        self.assertIn("Total Requests Completed:  0", report)
        self.assertIn("Fastest Completion Time:   N/A", report)
        self.assertIn("Slowest Completion Time:   N/A", report)
        self.assertIn("Average Completion Time:   N/A", report)

    def test_single_completion(self):
        """Test a single 200 ms completion"""
        stats = StatsCollector(clock=lambda: 100.2)
        stats.add_completed_request(Request(3, time_created=100.0))

        self.assertEqual(stats.count, 1)
        self.assertEqual(stats.fastest, 0.2)
        self.assertEqual(stats.slowest, 0.2)
        self.assertEqual(stats.average, 0.2)
        self.assertIn("Fastest Completion Time:   0.2 seconds", str(stats))
        self.assertIn("Average Completion Time:   0.2 seconds", str(stats))

    def test_multiple_completions(self):
        """Test min, max and average over several completions"""
        stats = StatsCollector(clock=lambda: 10.0)
        stats.add_completed_request(Request(1, time_created=9.9))
        stats.add_completed_request(Request(2, time_created=9.7))

        self.assertEqual(stats.count, 2)
        self.assertEqual(stats.fastest, 0.1)
        self.assertEqual(stats.slowest, 0.3)
        self.assertEqual(stats.average, 0.2)


class TestElevatorController(unittest.IsolatedAsyncioTestCase):
    """Unit test class for elevator controller"""

    def setUp(self):
        """Setup before test execution"""
        self.controller = make_controller()

    def test_initial_state(self):
        """Test a new elevator is idle with closed doors"""
        controller = make_controller(start_floor=3, elevator_id=7)
        self.assertEqual(controller.get_id(), 7)
        self.assertEqual(controller.get_current_floor(), 3)
        self.assertEqual(controller.state, ElevatorState.IDLE)
        self.assertFalse(controller.is_moving)
        self.assertTrue(controller.doors.are_closed())
        self.assertIn("id=7", repr(controller))

    def test_duplicate_press_is_ignored(self):
        """Test pressing the same button twice yields one request"""
        self.assertTrue(self.controller.press_internal_button(5))
        with self.assertLogs("ElevatorSystem.controller", level="INFO") as logs:
            self.assertFalse(self.controller.press_internal_button(5))

        self.assertTrue(any("already pressed" in line for line in logs.output))
        self.assertEqual(self.controller.scheduler.snapshot()["up"], [5])

    def test_internal_and_external_presses_do_not_collide(self):
        """Test internal and hall buttons for one floor are tracked separately"""
        self.assertTrue(self.controller.press_internal_button(5))
        self.assertTrue(self.controller.press_external_button(5, UP))
        self.assertTrue(self.controller.press_external_button(5, DOWN))

        self.assertTrue(self.controller.is_button_pressed(Button(floor=5)))
        self.assertTrue(self.controller.is_button_pressed(Button(floor=5, direction=UP)))
        self.assertFalse(self.controller.is_button_pressed(Button(floor=6, direction=UP)))
        snapshot = self.controller.scheduler.snapshot()
        self.assertEqual(snapshot["up"], [5, 5])
        self.assertEqual(snapshot["down"], [5])

    def test_external_button_requires_direction(self):
        """Test hall buttons must be UP or DOWN"""
        with self.assertRaises(ValueError):
            self.controller.press_external_button(3, NONE)
        self.assertFalse(self.controller.scheduler.has_requests())

    async def test_press_after_satisfaction_creates_new_request(self):
        """Test a button can be pressed again once its request was served"""
        self.controller.press_internal_button(4)
        self.controller.terminate()
        await self.controller.run()

        self.assertFalse(self.controller.is_button_pressed(Button(floor=4)))
        self.assertTrue(self.controller.press_internal_button(4))
        self.assertTrue(self.controller.scheduler.has_requests())

    async def test_serves_up_then_down(self):
        """Test requests on both sides of the car are served up first, then down"""
        controller = make_controller(start_floor=5)
        for floor in [6, 7, 3, 1, -2, 9]:
            controller.press_internal_button(floor)
        controller.terminate()

        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            await controller.run()

        self.assertEqual(arrived_floors(logs.output), [6, 7, 9, 3, 1, -2])
        self.assertEqual(controller.get_current_floor(), -2)
        self.assertEqual(controller.stats.count, 6)
        self.assertIn("Total Requests Completed:  6", controller.get_stats())
        self.assertEqual(controller.state, ElevatorState.TERMINATING)
        self.assertTrue(controller.doors.are_closed())
        self.assertFalse(controller.is_moving)

    async def test_redirects_to_request_ahead_mid_travel(self):
        """Test a request ahead of the car becomes the destination without stopping first"""
        self.controller.press_internal_button(9)
        original_travel = self.controller._travel_one_floor_towards

        async def travel_and_press(destination_floor):
            await original_travel(destination_floor)
            if self.controller.get_current_floor() == 2:
                self.controller.press_internal_button(5)

        self.controller._travel_one_floor_towards = travel_and_press
        self.controller.terminate()

        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            await self.controller.run()

        self.assertEqual(arrived_floors(logs.output), [5, 9])
        self.assertTrue(any("Updating elevator to move in direction UP to floor 5" in line
                            for line in logs.output))

    async def test_hall_call_behind_car_is_served_after_sweep(self):
        """Test an UP call below a car heading up is served after the car's upward work"""
        self.controller.press_internal_button(9)
        original_travel = self.controller._travel_one_floor_towards

        async def travel_and_press(destination_floor):
            await original_travel(destination_floor)
            if self.controller.get_current_floor() == 4 and destination_floor == 9:
                self.controller.press_external_button(2, UP)
                self.controller.press_external_button(6, UP)

        self.controller._travel_one_floor_towards = travel_and_press
        self.controller.terminate()

        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            await self.controller.run()

        self.assertEqual(arrived_floors(logs.output), [6, 9, 2])
        self.assertEqual(self.controller.get_current_floor(), 2)

    async def test_idle_elevator_picks_up_new_request(self):
        """Test a running idle elevator serves a request pressed later"""
        task = asyncio.create_task(self.controller.run())
        await asyncio.sleep(0.05)
        self.assertEqual(self.controller.state, ElevatorState.IDLE)

        self.controller.press_external_button(2, DOWN)
        self.controller.terminate()
        await asyncio.wait_for(task, timeout=5)

        self.assertEqual(self.controller.get_current_floor(), 2)
        self.assertEqual(self.controller.stats.count, 1)
        self.assertFalse(self.controller.is_button_pressed(Button(floor=2, direction=DOWN)))

    async def test_terminate_interrupts_idle_wait(self):
        """Test terminating an idle elevator does not wait out the idle interval"""
        controller = make_controller(idle_check_interval=10)
        task = asyncio.create_task(controller.run())
        await asyncio.sleep(0.01)

        with self.assertLogs("ElevatorSystem.controller", level="INFO") as logs:
            controller.terminate()
            await asyncio.wait_for(task, timeout=1)

        self.assertTrue(any("interrupted" in line for line in logs.output))
        self.assertEqual(controller.state, ElevatorState.TERMINATING)

    async def test_missing_request_aborts_cycle(self):
        """Test a scheduler that claims work but returns no request only logs a warning"""
        scheduler = MagicMock()
        scheduler.get_current_request.return_value = None
        controller = make_controller(scheduler_factory=lambda floor_provider: scheduler)

        with self.assertLogs("ElevatorSystem.controller", level="WARNING"):
            await controller.process_next_request()

        scheduler.remove_request.assert_not_called()
        self.assertEqual(controller.get_current_floor(), 0)

    async def test_scheduler_factory_receives_floor_provider(self):
        """Test an injected scheduler reads the live floor of its elevator"""
        controller = make_controller(
            start_floor=4,
            scheduler_factory=lambda floor_provider: LookWithDirectionScheduler(floor_provider))
        controller.press_internal_button(2)
        self.assertEqual(controller.scheduler.snapshot()["down"], [2])


class TestButtonPresser(unittest.IsolatedAsyncioTestCase):
    """Unit test class for the button press driver"""

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def write_events(self, content: str) -> str:
        path = os.path.join(self.tmp_dir.name, "events.csv")
        with open(path, "w") as events_file:
            events_file.write(content)
        return path

    def test_load_events(self):
        """Test well formed lines are loaded in order"""
        path = self.write_events("5, UP, 100\n3, NONE, 0\n8, down, 2500\n")
        events = load_events(path)

        self.assertEqual([(e.floor, e.direction, e.delay_ms) for e in events],
                         [(5, UP, 100), (3, NONE, 0), (8, DOWN, 2500)])
        self.assertEqual(events[2].delay_seconds, 2.5)

    def test_malformed_lines_are_skipped(self):
        """Test lines with wrong field counts or values are logged and skipped"""
        path = self.write_events("5, UP\n1, NONE, 10, 4\nx, UP, 10\n2, LEFT, 10\n4, UP, -5\n6, DOWN, 20\n")

        with self.assertLogs("ElevatorSystem.button_presser", level="WARNING") as logs:
            events = load_events(path)

        self.assertEqual([(e.floor, e.direction) for e in events], [(6, DOWN)])
        self.assertEqual(len([line for line in logs.output if line.startswith("WARNING")]), 5)

    def test_missing_file_yields_no_events(self):
        """Test an unreadable file is reported and no events are loaded"""
        path = os.path.join(self.tmp_dir.name, "missing.csv")
        with self.assertLogs("ElevatorSystem.button_presser", level="CRITICAL"):
            events = load_events(path)
        self.assertEqual(events, [])

    async def test_run_presses_buttons(self):
        """Test events are replayed as internal or external presses"""
        elevator = MagicMock()
        events = [
            ButtonPressEvent(floor=3, direction=NONE, delay_ms=0),
            ButtonPressEvent(floor=5, direction=UP, delay_ms=0),
        ]
        presser = ButtonPresser(elevator, events=events)
        await presser.run()

        elevator.press_internal_button.assert_called_once_with(3)
        elevator.press_external_button.assert_called_once_with(5, UP)

    async def test_simulation_serves_all_events(self):
        """Test a full simulation serves every scheduled press and reports stats"""
        path = self.write_events("9, DOWN, 0\n5, UP, 0\n3, NONE, 0\n")
        elevator = make_controller(idle_check_interval=10)
        presser = ButtonPresser(elevator, events_file=path)

        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            await asyncio.wait_for(simulate(elevator, presser), timeout=5)

        self.assertEqual(arrived_floors(logs.output), [9, 3, 5])
        self.assertIn("Total Requests Completed:  3", elevator.get_stats())

    def test_parse_args_defaults(self):
        """Test command line defaults come from configuration"""
        args = parse_args([])
        config = get_config()
        self.assertEqual(args.events, config["events"]["file"])
        self.assertEqual(args.start_floor, config["elevator"]["start_floor"])


if __name__ == "__main__":
    unittest.main()
