# utils/scheduler.py
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Protocol


# =========================================================
#  Clock
# =========================================================
class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to a given moment; ``set`` moves it."""

    def __init__(self, moment: datetime | date) -> None:
        self.set(moment)

    def set(self, moment: datetime | date) -> None:
        if not isinstance(moment, datetime):
            moment = datetime(moment.year, moment.month, moment.day, 12, 0)
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def today(self) -> date:
        return self._moment.date()


# =========================================================
#  Tick scheduling
# =========================================================
class TickHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    def schedule_tick(self, callback: Callable[[], None], interval_ms: int) -> TickHandle: ...


@dataclass
class _Interval:
    callback: Callable[[], None]
    interval_ms: int
    next_due_ms: int
    seq: int
    active: bool = True

    def cancel(self) -> None:
        self.active = False


class VirtualScheduler:
    """
    Cooperative interval scheduler driven by explicit time advances.

    Nothing fires on its own: ``advance``/``advance_to`` run every due
    callback in due-time order. An interval created inside a callback is
    timed from that callback's moment.
    """

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms
        self._intervals: list[_Interval] = []
        self._seq = 0

    def schedule_tick(self, callback: Callable[[], None], interval_ms: int) -> _Interval:
        interval_ms = max(1, int(interval_ms))
        self._seq += 1
        handle = _Interval(callback, interval_ms, self.now_ms + interval_ms, self._seq)
        self._intervals.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._intervals if h.active)

    def advance(self, ms: int) -> None:
        self.advance_to(self.now_ms + int(ms))

    def advance_to(self, target_ms: int) -> None:
        while True:
            self._intervals = [h for h in self._intervals if h.active]
            due = [h for h in self._intervals if h.next_due_ms <= target_ms]
            if not due:
                break
            handle = min(due, key=lambda h: (h.next_due_ms, h.seq))
            self.now_ms = handle.next_due_ms
            handle.next_due_ms += handle.interval_ms
            handle.callback()
        self.now_ms = max(self.now_ms, target_ms)


class WallClockScheduler(VirtualScheduler):
    """VirtualScheduler that follows the monotonic clock whenever ``catch_up`` is called."""

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        super().__init__(start_ms=self._wall_ms())

    def _wall_ms(self) -> int:
        return int(self._monotonic() * 1000)

    def catch_up(self) -> None:
        self.advance_to(self._wall_ms())
