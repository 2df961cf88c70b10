import unittest
from datetime import date

import pandas as pd

from analytics.adherence import AdherenceLedger
from analytics.history import (
    HISTORY_COLUMNS,
    WEEKLY_COLUMNS,
    build_history_frame,
    build_weekly_adherence,
    month_bounds,
    recent_history,
    streak_lengths,
)
from clients.local_store import MemoryStore
from data_model import normalize_exercise
from utils.scheduler import FixedClock

TODAY = date(2026, 3, 10)  # a Tuesday
CATALOG = [normalize_exercise({"id": "t1", "name": "t1", "duration": 10})]


def make_ledger() -> AdherenceLedger:
    ledger = AdherenceLedger(MemoryStore(), clock=FixedClock(TODAY))
    ledger.load()
    return ledger


class TestHistoryFrame(unittest.TestCase):
    def test_daily_rows(self) -> None:
        ledger = make_ledger()
        ledger.record_session("2026-03-08", 1)
        frame = build_history_frame(ledger, CATALOG, "2026-03-07", "2026-03-12")

        self.assertEqual(list(frame.columns), HISTORY_COLUMNS)
        self.assertEqual(len(frame), 6)
        by_date = frame.set_index("date")
        self.assertEqual(by_date.loc[date(2026, 3, 8), "status"], "green")
        self.assertEqual(by_date.loc[date(2026, 3, 7), "status"], "red")
        self.assertEqual(by_date.loc[date(2026, 3, 11), "status"], "none")

    def test_reversed_window_is_empty(self) -> None:
        frame = build_history_frame(make_ledger(), CATALOG, "2026-03-10", "2026-03-01")
        self.assertTrue(frame.empty)
        self.assertEqual(list(frame.columns), HISTORY_COLUMNS)

    def test_recent_history_ends_today(self) -> None:
        frame = recent_history(make_ledger(), CATALOG, days=7)
        self.assertEqual(len(frame), 7)
        self.assertEqual(frame["date"].iloc[-1], TODAY)


class TestStreaks(unittest.TestCase):
    def test_streak_lengths(self) -> None:
        self.assertEqual(streak_lengths(pd.Series([True, True, False, True, True, True])), (3, 3))
        self.assertEqual(streak_lengths(pd.Series([True, True, True, False])), (0, 3))
        self.assertEqual(streak_lengths(pd.Series([], dtype=bool)), (0, 0))


class TestWeeklyAdherence(unittest.TestCase):
    def test_weeks_start_on_monday(self) -> None:
        ledger = make_ledger()
        for key in ("2026-03-02", "2026-03-03", "2026-03-09"):
            ledger.record_session(key, 1)
        history = build_history_frame(ledger, CATALOG, "2026-03-02", "2026-03-15")
        weekly = build_weekly_adherence(history)

        self.assertEqual(list(weekly.columns), WEEKLY_COLUMNS)
        self.assertEqual(list(weekly["week_start"]), [date(2026, 3, 2), date(2026, 3, 9)])
        first, second = weekly.iloc[0], weekly.iloc[1]
        self.assertEqual((first["days"], first["days_on_target"]), (7, 2))
        # future days in the second week are left out
        self.assertEqual((second["days"], second["days_on_target"]), (2, 1))
        self.assertAlmostEqual(second["compliance"], 0.5)

    def test_empty_history(self) -> None:
        self.assertTrue(build_weekly_adherence(pd.DataFrame(columns=HISTORY_COLUMNS)).empty)


class TestMonthBounds(unittest.TestCase):
    def test_bounds(self) -> None:
        self.assertEqual(month_bounds(2026, 2), (date(2026, 2, 1), date(2026, 2, 28)))
        self.assertEqual(month_bounds(2026, 12), (date(2026, 12, 1), date(2026, 12, 31)))


if __name__ == "__main__":
    unittest.main()
