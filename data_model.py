from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

DEFAULT_DURATION = 60
MIN_DURATION = 5
DEFAULT_REPS = 1
DEFAULT_SETS = 1


class ExerciseValidationError(ValueError):
    """Raised when a new exercise is missing required input."""


def floor_int(value: Any) -> int | None:
    """Floor anything number-like to an int; None when it isn't a finite number."""
    if value is None or isinstance(value, (list, dict, tuple, set)):
        return None
    if isinstance(value, int):
        return int(value)
    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(num):
        return None
    return math.floor(num)


def _non_negative(value: Any) -> int:
    parsed = floor_int(value)
    return max(0, parsed) if parsed is not None else 0


def _at_least(value: Any, minimum: int, default: int) -> int:
    parsed = floor_int(value)
    if parsed is None or parsed <= 0:
        return default
    return max(minimum, parsed)


def new_exercise_id() -> str:
    return f"ex-{int(time.time() * 1000)}"


# =========================================================
#  Exercise
# =========================================================
@dataclass
class Exercise:
    id: str
    name: str
    description: str = ""
    use_timer: bool = True
    duration: int = DEFAULT_DURATION   # seconds, timed exercises only
    reps: int = DEFAULT_REPS           # timer cycles per pass
    sets: int = DEFAULT_SETS           # passes per day for "on target"
    image: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "useTimer": self.use_timer,
            "duration": self.duration,
            "reps": self.reps,
            "sets": self.sets,
            "image": self.image,
        }


def normalize_exercise(raw: Any) -> Exercise:
    """
    Turn a stored exercise dict (any vintage) into a valid Exercise.

    Only an explicit ``useTimer: false`` makes a checkoff exercise; reps and
    sets are forced to 1 for those.
    """
    if isinstance(raw, Exercise):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}

    use_timer = raw.get("useTimer", raw.get("use_timer")) is not False
    ex_id = raw.get("id")
    name = raw.get("name")
    image = raw.get("image")

    return Exercise(
        id=str(ex_id) if ex_id not in (None, "") else new_exercise_id(),
        name=str(name) if name is not None else "",
        description=str(raw.get("description") or ""),
        use_timer=use_timer,
        duration=_at_least(raw.get("duration"), MIN_DURATION, DEFAULT_DURATION),
        reps=_at_least(raw.get("reps"), 1, DEFAULT_REPS) if use_timer else 1,
        sets=_at_least(raw.get("sets"), 1, DEFAULT_SETS) if use_timer else 1,
        image=image if isinstance(image, str) and image else None,
    )


def build_exercise(
    name: str,
    description: str = "",
    *,
    use_timer: bool = True,
    duration: Any = DEFAULT_DURATION,
    reps: Any = DEFAULT_REPS,
    sets: Any = DEFAULT_SETS,
    image: str | None = None,
) -> Exercise:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ExerciseValidationError("Please enter an exercise name.")
    return normalize_exercise({
        "id": new_exercise_id(),
        "name": clean_name,
        "description": description or "",
        "useTimer": bool(use_timer),
        "duration": duration,
        "reps": reps,
        "sets": sets,
        "image": image,
    })


# Seed routine used the first time the app runs.
DEFAULT_EXERCISES = [
    {
        "id": "ex-1",
        "name": "Gaze Stabilization (x1)",
        "description": (
            "Fix your eyes on a printed X at arm's length. Turn your head briskly "
            "side to side (then nod up and down) while keeping the X in focus. "
            "Rest until symptoms settle, then repeat."
        ),
        "duration": 60,
    },
    {
        "id": "ex-2",
        "name": "X2 Beginners",
        "description": (
            "Two targets 30 cm apart. Look at A, turn your head to A, move only "
            "your eyes to B, then turn your head to B. Repeat, then do the same "
            "vertically."
        ),
        "duration": 60,
    },
    {
        "id": "ex-3",
        "name": "X2 Moving Checkerboard",
        "description": (
            "Hold the checkerboard at arm's length and move it side to side "
            "while turning your head the opposite way, keeping it in focus."
        ),
        "duration": 60,
    },
    {
        "id": "ex-4",
        "name": "Standing Balance",
        "description": (
            "Stand near a wall with feet together, then heel to toe. Hold each "
            "position; close your eyes once it feels steady."
        ),
        "duration": 90,
    },
    {
        "id": "ex-5",
        "name": "Walking Head Turns",
        "description": (
            "Walk a hallway while turning your head left and right every few "
            "steps, keeping a straight line."
        ),
        "duration": 120,
    },
    {
        "id": "ex-6",
        "name": "Habituation Turns",
        "description": (
            "Repeat the movement that provokes mild dizziness. Aim to increase "
            "the speed of your head turn. Continue for 2-3 minutes then rest."
        ),
        "duration": 150,
    },
    {
        "id": "ex-7",
        "name": "Daily Walk Outdoors",
        "description": (
            "Walk outdoors for 10 minutes, turning your head to look at objects "
            "on each side as you go."
        ),
        "duration": 600,
    },
]


# =========================================================
#  Day records
# =========================================================
def _entry_completed(entry: Any) -> bool:
    if not isinstance(entry, Mapping):
        return False
    if isinstance(entry.get("completed"), bool):
        return entry["completed"]
    return _non_negative(entry.get("reps")) > 0 or _non_negative(entry.get("sessions")) > 0


@dataclass
class DayRecord:
    """
    One calendar day of adherence data.

    ``timed_sessions`` is a single counter shared by every timed exercise on
    that day (completed routine passes); ``completed`` holds the checkoff
    flags keyed by exercise id.
    """

    timed_sessions: int = 0
    completed: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> "DayRecord":
        if not isinstance(raw, Mapping):
            return cls()
        if "meta" in raw or "exercises" in raw:
            return cls._from_current(raw)
        return cls._from_legacy(raw)

    @classmethod
    def _from_current(cls, raw: Mapping) -> "DayRecord":
        meta = raw.get("meta")
        sessions = 0
        if isinstance(meta, Mapping):
            value = meta.get("timedSessions")
            if value is None:
                value = meta.get("sessions")
            sessions = _non_negative(value)

        entries = raw.get("exercises")
        completed = {}
        if isinstance(entries, Mapping):
            completed = {str(ex_id): _entry_completed(entry) for ex_id, entry in entries.items()}
        return cls(timed_sessions=sessions, completed=completed)

    @classmethod
    def _from_legacy(cls, raw: Mapping) -> "DayRecord":
        # { exerciseId: {reps, sessions} | number }
        max_sessions = 0
        completed = {}
        for ex_id, entry in raw.items():
            if isinstance(entry, (int, float)) and not isinstance(entry, bool):
                max_sessions = max(max_sessions, _non_negative(entry))
                completed[str(ex_id)] = False
            elif isinstance(entry, Mapping):
                max_sessions = max(max_sessions, _non_negative(entry.get("sessions")))
                completed[str(ex_id)] = _entry_completed(entry)
            else:
                completed[str(ex_id)] = False
        return cls(timed_sessions=max_sessions, completed=completed)

    def to_dict(self) -> dict:
        return {
            "meta": {"timedSessions": self.timed_sessions},
            "exercises": {ex_id: {"completed": done} for ex_id, done in self.completed.items()},
        }


def normalize_day(raw: Any) -> dict:
    return DayRecord.from_raw(raw).to_dict()


def normalize_calendar(raw: Any) -> dict[str, DayRecord]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(key): DayRecord.from_raw(day) for key, day in raw.items()}
