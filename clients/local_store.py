import json
from pathlib import Path
from typing import Any, Callable, Protocol


def _ignore(_msg: str) -> None:
    pass


class Store(Protocol):
    def load(self) -> Any: ...

    def save(self, data: Any) -> None: ...


class JsonFileStore:
    """
    Best-effort JSON persistence for one keyed value.

    - load() -> parsed JSON, or None when the file is missing or unreadable
    - save(data) never raises; failures go to ``warn``
    """

    def __init__(self, path: str | Path, warn: Callable[[str], None] | None = None) -> None:
        self.path = Path(path)
        self.warn = warn or _ignore

    def load(self) -> Any:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except Exception as exc:
            self.warn(f"Could not read {self.path.name}: {exc}")
            return None

    def save(self, data: Any) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(data, indent=2)
            with self.path.open("w", encoding="utf-8") as f:
                f.write(payload)
        except Exception as exc:
            self.warn(f"Could not persist {self.path.name}: {exc}")


class MemoryStore:
    """In-process store with the same contract, used when nothing should touch disk."""

    def __init__(self, data: Any = None) -> None:
        self.data = data
        self.saves = 0

    def load(self) -> Any:
        return json.loads(json.dumps(self.data)) if self.data is not None else None

    def save(self, data: Any) -> None:
        self.data = json.loads(json.dumps(data))
        self.saves += 1


def open_stores(data_dir: str | Path, warn: Callable[[str], None] | None = None) -> dict[str, JsonFileStore]:
    base = Path(data_dir)
    return {
        "exercises": JsonFileStore(base / "exercises.json", warn),
        "calendar": JsonFileStore(base / "calendar.json", warn),
        "settings": JsonFileStore(base / "settings.json", warn),
    }
