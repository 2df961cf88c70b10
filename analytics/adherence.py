from __future__ import annotations

import calendar as _calendar
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable

import numpy as np
import pandas as pd

from clients.local_store import Store
from data_model import DayRecord, Exercise, normalize_calendar
from utils.scheduler import Clock, SystemClock

STATUS_NONE = "none"
STATUS_RED = "red"
STATUS_YELLOW = "yellow"
STATUS_GREEN = "green"

GRID_COLUMNS = [
    "date", "day", "week", "weekday", "status",
    "exercises_on_target", "total_exercises", "percent",
    "is_today", "is_selected",
]


def format_date_key(value: date | datetime | str) -> str:
    return to_date(value).isoformat()


def to_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@dataclass
class DaySummary:
    date_key: str
    total_exercises: int
    exercises_on_target: int
    timed_sessions_logged: int
    total_exercise_sessions: int
    any_logged: bool

    @property
    def percent(self) -> int:
        if self.total_exercises <= 0:
            return 0
        return math.floor(self.exercises_on_target / self.total_exercises * 100 + 0.5)


class AdherenceLedger:
    """
    Date-keyed adherence history.

    Owns every DayRecord. Timed exercises share one ``timed_sessions`` counter
    per day (completed routine passes); checkoff exercises each have a
    completion flag.
    """

    def __init__(
        self,
        store: Store | None = None,
        clock: Clock | None = None,
        warn: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.warn = warn or (lambda _msg: None)
        self.days: dict[str, DayRecord] = {}

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        raw = None
        if self.store is not None:
            try:
                raw = self.store.load()
                self.days = normalize_calendar(raw)
                return
            except Exception as exc:
                self.warn(f"Could not load calendar history: {exc}")
        self.days = {}

    def save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.to_dict())
        except Exception as exc:
            self.warn(f"Could not persist calendar history: {exc}")

    def to_dict(self) -> dict:
        return {key: day.to_dict() for key, day in sorted(self.days.items())}

    # ------------------------------------------------------------------
    # Day records
    # ------------------------------------------------------------------
    def today_key(self) -> str:
        return format_date_key(self.clock.today())

    def get_day(self, when: date | datetime | str) -> DayRecord:
        key = format_date_key(when)
        day = self.days.get(key)
        if not isinstance(day, DayRecord):
            day = DayRecord.from_raw(day)
            self.days[key] = day
        return day

    def record_session(self, when: date | datetime | str, delta: float = 1) -> int:
        day = self.get_day(when)
        try:
            added = max(0, int(np.floor(delta)))
        except (TypeError, ValueError, OverflowError):
            added = 0
        day.timed_sessions = max(0, day.timed_sessions + added)
        self.save()
        return day.timed_sessions

    def set_checkoff_completed(self, when: date | datetime | str, exercise_id: str, completed: bool) -> None:
        self.get_day(when).completed[exercise_id] = bool(completed)
        self.save()

    def is_checkoff_completed(self, when: date | datetime | str, exercise_id: str) -> bool:
        return bool(self.get_day(when).completed.get(exercise_id, False))

    def toggle_checkoff(self, when: date | datetime | str, exercise_id: str) -> bool:
        flipped = not self.is_checkoff_completed(when, exercise_id)
        self.set_checkoff_completed(when, exercise_id, flipped)
        return flipped

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    @staticmethod
    def sessions_target(exercise: Exercise) -> int:
        if not exercise.use_timer:
            return 1
        return max(1, int(exercise.sets or 1))

    def sessions_for_date(self, when: date | datetime | str, exercise: Exercise) -> int:
        day = self.get_day(when)
        if exercise.use_timer:
            return day.timed_sessions
        return 1 if day.completed.get(exercise.id, False) else 0

    def summarize(self, when: date | datetime | str, exercises: Iterable[Exercise]) -> DaySummary:
        key = format_date_key(when)
        day = self.get_day(key)
        catalog = list(exercises)

        on_target = 0
        total_sessions = 0
        any_logged = day.timed_sessions > 0
        for ex in catalog:
            sessions = self.sessions_for_date(key, ex)
            total_sessions += sessions
            if sessions > 0:
                any_logged = True
            if sessions >= self.sessions_target(ex):
                on_target += 1

        return DaySummary(
            date_key=key,
            total_exercises=len(catalog),
            exercises_on_target=on_target,
            timed_sessions_logged=day.timed_sessions,
            total_exercise_sessions=total_sessions,
            any_logged=any_logged,
        )

    def is_future(self, when: date | datetime | str) -> bool:
        # Calendar-date comparison, so "today" never counts as future.
        return to_date(when) > self.clock.today()

    def status(self, when: date | datetime | str, exercises: Iterable[Exercise]) -> str:
        catalog = list(exercises)
        if self.is_future(when) or not catalog:
            return STATUS_NONE
        summary = self.summarize(when, catalog)
        if not summary.any_logged:
            return STATUS_RED
        if summary.exercises_on_target >= summary.total_exercises:
            return STATUS_GREEN
        return STATUS_YELLOW

    # ------------------------------------------------------------------
    # Frames for the calendar view
    # ------------------------------------------------------------------
    def exercise_rows(self, when: date | datetime | str, exercises: Iterable[Exercise]) -> pd.DataFrame:
        rows = []
        for ex in exercises:
            sessions = self.sessions_for_date(when, ex)
            target = self.sessions_target(ex)
            rows.append({
                "exercise_id": ex.id,
                "name": ex.name,
                "kind": "timer" if ex.use_timer else "checkoff",
                "sessions": sessions,
                "target": target,
                "completed": (not ex.use_timer) and sessions >= 1,
                "done": sessions >= target,
            })
        if not rows:
            return pd.DataFrame(columns=[
                "exercise_id", "name", "kind", "sessions", "target", "completed", "done",
            ])
        return pd.DataFrame(rows)

    def month_grid(
        self,
        year: int,
        month: int,
        exercises: Iterable[Exercise],
        selected: date | datetime | str | None = None,
    ) -> pd.DataFrame:
        """
        One row per day of the month, laid out Sunday-first.

        ``week`` is the grid row and ``weekday`` the column (0 = Sunday).
        """
        catalog = list(exercises)
        days_in_month = _calendar.monthrange(year, month)[1]
        dates = pd.date_range(date(year, month, 1), periods=days_in_month, freq="D")
        if dates.empty:
            return pd.DataFrame(columns=GRID_COLUMNS)

        today = self.clock.today()
        selected_key = format_date_key(selected) if selected is not None else None
        first_offset = (dates[0].weekday() + 1) % 7

        rows = []
        for ts in dates:
            d = ts.date()
            summary = self.summarize(d, catalog)
            rows.append({
                "date": d,
                "day": d.day,
                "week": (d.day - 1 + first_offset) // 7,
                "weekday": (d.weekday() + 1) % 7,
                "status": self.status(d, catalog),
                "exercises_on_target": summary.exercises_on_target,
                "total_exercises": summary.total_exercises,
                "is_today": d == today,
                "is_selected": d.isoformat() == selected_key,
            })

        grid = pd.DataFrame(rows)
        totals = grid["total_exercises"].to_numpy()
        grid["percent"] = np.where(
            totals > 0,
            np.floor(grid["exercises_on_target"].to_numpy() / np.maximum(totals, 1) * 100 + 0.5),
            0,
        ).astype(int)
        return grid[GRID_COLUMNS]
