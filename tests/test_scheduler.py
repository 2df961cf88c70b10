import unittest
from datetime import date, datetime

from utils.formatting import format_lead_in, format_time, plural
from utils.scheduler import FixedClock, VirtualScheduler, WallClockScheduler


class TestVirtualScheduler(unittest.TestCase):
    def test_fires_in_due_order(self) -> None:
        sched = VirtualScheduler()
        fired = []
        sched.schedule_tick(lambda: fired.append(("slow", sched.now_ms)), 300)
        sched.schedule_tick(lambda: fired.append(("fast", sched.now_ms)), 200)
        sched.advance(600)
        self.assertEqual(
            fired,
            [("fast", 200), ("slow", 300), ("fast", 400), ("slow", 600), ("fast", 600)],
        )
        self.assertEqual(sched.now_ms, 600)

    def test_nothing_fires_before_due(self) -> None:
        sched = VirtualScheduler()
        fired = []
        sched.schedule_tick(lambda: fired.append(1), 1000)
        sched.advance(999)
        self.assertEqual(fired, [])
        sched.advance(1)
        self.assertEqual(fired, [1])

    def test_cancel_inside_callback(self) -> None:
        sched = VirtualScheduler()
        fired = []

        def tick():
            fired.append(sched.now_ms)
            if len(fired) == 3:
                handle.cancel()

        handle = sched.schedule_tick(tick, 1000)
        sched.advance(10_000)
        self.assertEqual(fired, [1000, 2000, 3000])
        self.assertEqual(sched.pending, 0)
        self.assertFalse(handle.active)

    def test_interval_created_in_callback_starts_from_that_moment(self) -> None:
        sched = VirtualScheduler()
        fired = []

        def first():
            first_handle.cancel()
            sched.schedule_tick(lambda: fired.append(sched.now_ms), 1000)

        first_handle = sched.schedule_tick(first, 1500)
        sched.advance(4000)
        self.assertEqual(fired, [2500, 3500])


class TestWallClockScheduler(unittest.TestCase):
    def test_catch_up_follows_monotonic_clock(self) -> None:
        now = [100.0]
        sched = WallClockScheduler(monotonic=lambda: now[0])
        fired = []
        sched.schedule_tick(lambda: fired.append(1), 1000)

        sched.catch_up()
        self.assertEqual(fired, [])
        now[0] = 103.5
        sched.catch_up()
        self.assertEqual(len(fired), 3)


class TestClock(unittest.TestCase):
    def test_fixed_clock(self) -> None:
        clock = FixedClock(date(2026, 3, 10))
        self.assertEqual(clock.now(), datetime(2026, 3, 10, 12, 0))
        clock.set(datetime(2026, 3, 11, 7, 30))
        self.assertEqual(clock.today(), date(2026, 3, 11))


class TestFormatting(unittest.TestCase):
    def test_format_time(self) -> None:
        self.assertEqual(format_time(0), "0:00")
        self.assertEqual(format_time(65), "1:05")
        self.assertEqual(format_time(600), "10:00")

    def test_format_lead_in(self) -> None:
        self.assertEqual(format_lead_in(3), "3")
        self.assertEqual(format_lead_in(-1), "0")

    def test_plural(self) -> None:
        self.assertEqual(plural(1, "exercise"), "1 exercise")
        self.assertEqual(plural(3, "exercise"), "3 exercises")


if __name__ == "__main__":
    unittest.main()
