from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from clients.local_store import Store
from data_model import DEFAULT_EXERCISES, Exercise, normalize_exercise

EDITABLE_FIELDS = {"name", "description", "use_timer", "duration", "reps", "sets", "image"}


@dataclass(frozen=True)
class CatalogChange:
    kind: str            # "added" | "updated" | "removed" | "moved"
    index: int
    target: int | None = None   # destination index for "moved"


class ExerciseCatalog:
    """
    Ordered, persisted exercise list.

    Every mutation is saved (best effort) and announced to subscribers so a
    running routine can keep pointing at the same exercise.
    """

    def __init__(self, store: Store | None = None, warn: Callable[[str], None] | None = None) -> None:
        self.store = store
        self.warn = warn or (lambda _msg: None)
        self._items: list[Exercise] = []
        self._listeners: list[Callable[[CatalogChange], None]] = []

    # ------------------------------------------------------------------
    def load(self) -> None:
        raw = None
        if self.store is not None:
            try:
                raw = self.store.load()
            except Exception as exc:
                self.warn(f"Could not load exercises: {exc}")

        if isinstance(raw, list):
            self._items = [normalize_exercise(item) for item in raw]
        else:
            self._items = [normalize_exercise(item) for item in copy.deepcopy(DEFAULT_EXERCISES)]
            self.save()

    def save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save([ex.to_dict() for ex in self._items])
        except Exception as exc:
            self.warn(f"Could not persist exercises: {exc}")

    def subscribe(self, listener: Callable[[CatalogChange], None]) -> None:
        self._listeners.append(listener)

    def _notify(self, change: CatalogChange) -> None:
        self.save()
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Exercise]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> Exercise:
        return self._items[index]

    @property
    def exercises(self) -> list[Exercise]:
        return list(self._items)

    def ids(self) -> list[str]:
        return [ex.id for ex in self._items]

    def find(self, exercise_id: str) -> Exercise | None:
        for ex in self._items:
            if ex.id == exercise_id:
                return ex
        return None

    def in_range(self, index: int) -> bool:
        return 0 <= index < len(self._items)

    # ------------------------------------------------------------------
    def add(self, exercise: Exercise | dict) -> Exercise:
        ex = normalize_exercise(exercise)
        self._items.append(ex)
        self._notify(CatalogChange("added", len(self._items) - 1))
        return ex

    def update(self, index: int, **fields: Any) -> Exercise | None:
        """Edit fields of one exercise; blank names keep the old name."""
        if not self.in_range(index):
            return None
        current = self._items[index].to_dict()
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "name":
                value = (value or "").strip() or current["name"]
            if key == "image" and not value:
                continue
            current["useTimer" if key == "use_timer" else key] = value
        self._items[index] = normalize_exercise(current)
        self._notify(CatalogChange("updated", index))
        return self._items[index]

    def remove(self, index: int) -> Exercise | None:
        if not self.in_range(index):
            return None
        removed = self._items.pop(index)
        self._notify(CatalogChange("removed", index))
        return removed

    def move(self, src: int, dst: int) -> bool:
        if not self.in_range(src) or not self.in_range(dst) or src == dst:
            return False
        moved = self._items.pop(src)
        self._items.insert(dst, moved)
        self._notify(CatalogChange("moved", src, dst))
        return True
