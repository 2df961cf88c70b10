import tempfile
import unittest
from pathlib import Path

from clients.local_store import JsonFileStore, MemoryStore, open_stores


class TestJsonFileStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)
        self.warnings = []

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_none(self) -> None:
        store = JsonFileStore(self.base / "nothing.json", self.warnings.append)
        self.assertIsNone(store.load())
        self.assertEqual(self.warnings, [])

    def test_save_creates_directories(self) -> None:
        store = JsonFileStore(self.base / "nested" / "calendar.json", self.warnings.append)
        store.save({"2026-03-10": {"meta": {"timedSessions": 1}, "exercises": {}}})
        self.assertEqual(store.load()["2026-03-10"]["meta"]["timedSessions"], 1)

    def test_corrupt_file_warns(self) -> None:
        path = self.base / "exercises.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileStore(path, self.warnings.append)
        self.assertIsNone(store.load())
        self.assertEqual(len(self.warnings), 1)
        self.assertIn("exercises.json", self.warnings[0])

    def test_save_failure_warns_instead_of_raising(self) -> None:
        blocker = self.base / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        store = JsonFileStore(blocker / "settings.json", self.warnings.append)
        store.save({"leadIn": 3})
        self.assertEqual(len(self.warnings), 1)
        self.assertTrue(self.warnings[0].startswith("Could not persist"))

    def test_open_stores(self) -> None:
        stores = open_stores(self.base)
        self.assertEqual(set(stores), {"exercises", "calendar", "settings"})
        self.assertEqual(stores["settings"].path, self.base / "settings.json")


class TestMemoryStore(unittest.TestCase):
    def test_copies_on_load_and_save(self) -> None:
        data = {"leadIn": 2}
        store = MemoryStore(data)
        loaded = store.load()
        loaded["leadIn"] = 9
        self.assertEqual(store.load(), {"leadIn": 2})

        store.save(loaded)
        loaded["leadIn"] = 1
        self.assertEqual(store.data, {"leadIn": 9})
        self.assertEqual(store.saves, 1)

    def test_empty(self) -> None:
        self.assertIsNone(MemoryStore().load())


if __name__ == "__main__":
    unittest.main()
