import unittest
from datetime import datetime, timedelta

from day_timeline.models import DayRecord, Task
from day_timeline.projector import MIN_VISIBLE_FRACTION, day_span, project_height, tag_breakdown, timesteps

T0 = datetime(2024, 1, 1, 9, 0, 0)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def closed_example_day() -> DayRecord:
    return DayRecord(
        date="2024-01-01",
        day_start_time=T0,
        day_end_time=at(3600),
        tasks=[
            Task("1", "Write", "", "a", at(0), at(600)),
            Task("2", "Email", "", "b", at(600), at(3600)),
        ],
    )


class TestProjectHeight(unittest.TestCase):
    def test_closed_day_fractions_ignore_now(self) -> None:
        day = closed_example_day()
        for now in (at(3600), at(99999)):
            self.assertAlmostEqual(project_height(day.tasks[0], day, now), 600 / 3600)
            self.assertAlmostEqual(project_height(day.tasks[1], day, now), 3000 / 3600)

    def test_open_task_grows_with_clock(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "Write", "", "a", at(0), at(100)),
                                            Task("2", "Read", "", "a", at(100))])
        running = day.tasks[1]
        self.assertAlmostEqual(project_height(running, day, at(200)), 0.5)
        self.assertAlmostEqual(project_height(running, day, at(1000)), 0.9)
        self.assertAlmostEqual(project_height(day.tasks[0], day, at(1000)), 0.1)

    def test_tiny_task_gets_minimum(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "Blink", "", "a", at(0), at(1))], at(3600))
        self.assertEqual(project_height(day.tasks[0], day, at(3600)), MIN_VISIBLE_FRACTION)

    def test_zero_span_day_returns_minimum(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "Start", "", "a", at(0))])
        self.assertEqual(project_height(day.tasks[0], day, T0), MIN_VISIBLE_FRACTION)

    def test_custom_minimum_and_upper_bound(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "All day", "", "a", at(0))])
        self.assertEqual(project_height(day.tasks[0], day, at(500)), 1.0)
        self.assertEqual(project_height(day.tasks[0], day, T0, minimum=0.1), 0.1)

    def test_bounds_hold_over_many_ticks(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "A", "", "a", at(0), at(30)),
                                            Task("2", "B", "", "a", at(30))])
        for tick in range(0, 600, 7):
            for task in day.tasks:
                h = project_height(task, day, at(tick))
                self.assertGreaterEqual(h, MIN_VISIBLE_FRACTION)
                self.assertLessEqual(h, 1.0)

    def test_day_span(self) -> None:
        self.assertEqual(day_span(closed_example_day(), at(0)), 3600)


class TestTimesteps(unittest.TestCase):
    def test_empty_day(self) -> None:
        self.assertEqual(timesteps(DayRecord("2024-01-01", T0), at(10)), [])

    def test_running_task_ends_at_now(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "A", "", "a", at(0), at(60)),
                                            Task("2", "B", "", "a", at(60))])
        self.assertEqual(timesteps(day, at(90)), [at(0), at(60), at(90)])

    def test_closed_day(self) -> None:
        self.assertEqual(timesteps(closed_example_day(), at(0)), [at(0), at(600), at(3600)])


class TestTagBreakdown(unittest.TestCase):
    def test_sums_per_tag_in_first_use_order(self) -> None:
        day = DayRecord("2024-01-01", T0, [Task("1", "A", "", "b", at(0), at(60)),
                                            Task("2", "B", "", "a", at(60), at(100)),
                                            Task("3", "C", "", "b", at(100))])
        totals = tag_breakdown(day, at(200))
        self.assertEqual(list(totals), ["b", "a"])
        self.assertEqual(totals["b"], 160)
        self.assertEqual(totals["a"], 40)


if __name__ == "__main__":
    unittest.main()
