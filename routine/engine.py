from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from analytics.adherence import AdherenceLedger
from clients.local_store import Store
from data_model import MIN_DURATION, Exercise, floor_int
from routine.catalog import CatalogChange, ExerciseCatalog
from utils.formatting import format_lead_in, format_time
from utils.scheduler import Clock, SystemClock, TickHandle, TickScheduler

DEFAULT_LEAD_IN = 5
TICK_MS = 1000


class Phase(str, Enum):
    IDLE = "idle"
    LEADIN = "leadin"
    RUNNING = "running"
    DONE = "done"
    CHECKOFF = "checkoff"
    STOPPED = "stopped"


STATUS_TEXT = {
    Phase.IDLE: "",
    Phase.STOPPED: "ready",
    Phase.LEADIN: "get ready",
    Phase.RUNNING: "running",
    Phase.DONE: "done",
    Phase.CHECKOFF: "click to toggle",
}


@dataclass
class RoutineRunState:
    current_index: int = -1
    phase: Phase = Phase.IDLE
    time_remaining: int = 0
    total_time: int = 0
    reps_by_exercise_id: dict[str, int] = field(default_factory=dict)
    routine_complete: bool = False


Listener = Callable[[str, RoutineRunState], None]


class RoutineEngine:
    """
    Walks one pass through the exercise catalog.

    Timed exercises run a lead-in then a 1 Hz countdown on the injected
    scheduler; checkoff exercises toggle today's completion in the ledger.
    Operations that don't apply to the current phase or index are ignored.
    """

    def __init__(
        self,
        catalog: ExerciseCatalog,
        ledger: AdherenceLedger,
        scheduler: TickScheduler,
        clock: Clock | None = None,
        settings: Store | None = None,
        lead_in: int = DEFAULT_LEAD_IN,
    ) -> None:
        self.catalog = catalog
        self.ledger = ledger
        self.scheduler = scheduler
        self.clock = clock or SystemClock()
        self.settings = settings
        self.lead_in = max(0, int(lead_in))
        self.state = RoutineRunState()
        self._tick: TickHandle | None = None
        self._countdown = 0
        self._listeners: list[Listener] = []

        self._sync_reps()
        catalog.subscribe(self._on_catalog_change)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.state)

    def _set_phase(self, phase: Phase) -> None:
        self.state.phase = phase
        self._emit("phase")

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def load_settings(self) -> None:
        if self.settings is None:
            return
        raw = self.settings.load()
        if isinstance(raw, dict):
            value = floor_int(raw.get("leadIn"))
            if value is not None and value >= 0:
                self.lead_in = value

    def set_lead_in(self, seconds) -> bool:
        value = floor_int(seconds)
        if value is None or value < 0:
            return False
        self.lead_in = value
        if self.settings is not None:
            self.settings.save({"leadIn": value})
        return True

    def set_duration(self, seconds) -> bool:
        ex = self.current_exercise
        value = floor_int(seconds)
        if ex is None or not ex.use_timer or value is None or value < MIN_DURATION:
            return False
        phase = self.state.phase
        if phase in (Phase.LEADIN, Phase.RUNNING):
            return False
        # the update reloads the slot as STOPPED with the new duration
        self.catalog.update(self.state.current_index, duration=value)
        if phase == Phase.DONE:
            self._set_phase(Phase.DONE)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def current_exercise(self) -> Exercise | None:
        index = self.state.current_index
        return self.catalog[index] if self.catalog.in_range(index) else None

    def has_timed_exercises(self) -> bool:
        return any(ex.use_timer for ex in self.catalog)

    def reps_done(self, exercise: Exercise) -> int:
        return max(0, int(self.state.reps_by_exercise_id.get(exercise.id, 0)))

    def exercise_target_met(self, exercise: Exercise) -> bool:
        if exercise.use_timer:
            return self.reps_done(exercise) >= max(1, exercise.reps)
        return self.ledger.is_checkoff_completed(self.clock.today(), exercise.id)

    def is_current_target_met(self) -> bool:
        ex = self.current_exercise
        return ex is not None and self.exercise_target_met(ex)

    def is_routine_target_met(self) -> bool:
        return all(self.exercise_target_met(ex) for ex in self.catalog)

    def rep_progress(self) -> tuple[int, int]:
        ex = self.current_exercise
        if ex is None or not ex.use_timer:
            return 0, 0
        return self.reps_done(ex), max(1, ex.reps)

    def checkoff_done(self) -> bool:
        ex = self.current_exercise
        if ex is None or ex.use_timer:
            return False
        return self.ledger.is_checkoff_completed(self.clock.today(), ex.id)

    def display_text(self) -> str:
        phase = self.state.phase
        if phase == Phase.IDLE:
            return ""
        if phase == Phase.CHECKOFF:
            return "Task Complete" if self.checkoff_done() else "Task Incomplete"
        if phase == Phase.LEADIN:
            return format_lead_in(self.state.time_remaining)
        return format_time(max(0, self.state.time_remaining))

    def status_text(self) -> str:
        if self.state.phase == Phase.CHECKOFF:
            return "click to mark incomplete" if self.checkoff_done() else "click to mark complete"
        return STATUS_TEXT[self.state.phase]

    def progress_ratio(self) -> float:
        total = self.state.total_time
        if self.state.phase == Phase.CHECKOFF or total <= 0:
            return 1.0
        return max(0.0, self.state.time_remaining / total)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def begin_pass(self) -> None:
        self._cancel_tick()
        self._reset_reps()
        self.state.routine_complete = False
        if len(self.catalog) == 0:
            self.go_idle()
            return
        self.load_slot(0)

    def go_idle(self) -> None:
        self._cancel_tick()
        self.state.current_index = -1
        self.state.time_remaining = 0
        self.state.total_time = 0
        self.state.routine_complete = False
        self._reset_reps()
        self._set_phase(Phase.IDLE)

    def load_slot(self, index: int) -> None:
        if not self.catalog.in_range(index):
            return
        self._cancel_tick()
        self.state.current_index = index
        ex = self.catalog[index]
        if ex.use_timer:
            self._reset_display(ex.duration)
            self._set_phase(Phase.STOPPED)
        else:
            self.state.time_remaining = 0
            self.state.total_time = 0
            self._set_phase(Phase.CHECKOFF)

    def start(self) -> None:
        ex = self.current_exercise
        if ex is None:
            return
        if not ex.use_timer:
            if self.state.phase == Phase.CHECKOFF:
                self.toggle_checkoff()
            return
        if self.state.phase not in (Phase.STOPPED, Phase.DONE):
            return

        self._cancel_tick()
        if self.lead_in > 0:
            self._countdown = self.lead_in
            self.state.total_time = self.lead_in
            self.state.time_remaining = self.lead_in
            self._set_phase(Phase.LEADIN)
            self._tick = self.scheduler.schedule_tick(self._on_lead_in_tick, TICK_MS)
        else:
            self._begin_countdown()

    def stop(self) -> None:
        ex = self.current_exercise
        if ex is None or self.state.phase == Phase.IDLE:
            return
        was_active = self.state.phase in (Phase.LEADIN, Phase.RUNNING)
        self._cancel_tick()
        if was_active:
            self._emit("exercise_stopped")
        if ex.use_timer:
            self._reset_display(ex.duration)
            self._set_phase(Phase.STOPPED)
        else:
            self._set_phase(Phase.CHECKOFF)

    def advance(self) -> None:
        if self.state.routine_complete or self.state.phase in (Phase.LEADIN, Phase.RUNNING):
            return
        if not self.is_current_target_met():
            return
        index = self.state.current_index
        if index < len(self.catalog) - 1:
            self.load_slot(index + 1)
            return
        if not self.is_routine_target_met():
            return
        if self.has_timed_exercises():
            self.ledger.record_session(self.clock.today(), 1)
        self.state.routine_complete = True
        self._emit("routine_complete")

    def toggle_checkoff(self) -> None:
        ex = self.current_exercise
        if ex is None or ex.use_timer or self.state.phase != Phase.CHECKOFF:
            return
        self.ledger.toggle_checkoff(self.clock.today(), ex.id)
        self._emit("checkoff_toggled")
        self._set_phase(Phase.CHECKOFF)

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------
    def _on_lead_in_tick(self) -> None:
        self._countdown -= 1
        self.state.time_remaining = max(0, self._countdown)
        self._emit("tick")
        if self._countdown <= 0:
            self._cancel_tick()
            self._begin_countdown()

    def _begin_countdown(self) -> None:
        ex = self.current_exercise
        if ex is None or not ex.use_timer:
            return
        self._reset_display(ex.duration)
        self._set_phase(Phase.RUNNING)
        self._emit("exercise_started")
        self._tick = self.scheduler.schedule_tick(self._on_exercise_tick, TICK_MS)

    def _on_exercise_tick(self) -> None:
        self.state.time_remaining -= 1
        self._emit("tick")
        if self.state.time_remaining <= 0:
            self._cancel_tick()
            self.state.time_remaining = 0
            ex = self.current_exercise
            if ex is not None:
                self.state.reps_by_exercise_id[ex.id] = self.reps_done(ex) + 1
            self._set_phase(Phase.DONE)
            self._emit("rep_completed")

    def _cancel_tick(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _reset_display(self, seconds: int) -> None:
        self.state.time_remaining = seconds
        self.state.total_time = seconds

    # ------------------------------------------------------------------
    # Run progress bookkeeping
    # ------------------------------------------------------------------
    def _reset_reps(self) -> None:
        self.state.reps_by_exercise_id = {ex.id: 0 for ex in self.catalog}

    def _sync_reps(self) -> None:
        old = self.state.reps_by_exercise_id
        self.state.reps_by_exercise_id = {ex.id: max(0, int(old.get(ex.id, 0))) for ex in self.catalog}

    def _on_catalog_change(self, change: CatalogChange) -> None:
        self._sync_reps()
        current = self.state.current_index
        if current < 0:
            return

        if change.kind == "removed":
            if change.index < current:
                self.state.current_index = current - 1
            elif change.index == current:
                if self.catalog.in_range(current):
                    self.load_slot(current)
                else:
                    self.go_idle()
        elif change.kind == "moved":
            src, dst = change.index, change.target
            if current == src:
                self.state.current_index = dst
            elif src < current <= dst:
                self.state.current_index = current - 1
            elif dst <= current < src:
                self.state.current_index = current + 1
        elif change.kind == "updated" and change.index == current:
            self.load_slot(current)
