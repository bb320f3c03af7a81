import json
import os
import tempfile
import unittest
from datetime import datetime

from day_timeline.errors import StorageError
from day_timeline.models import DayRecord, Tag, Task
from day_timeline.storage import TAGS_KEY, JsonFileStore, MemoryStore

T0 = datetime(2024, 1, 1, 9, 0, 0)
T1 = datetime(2024, 1, 1, 9, 10, 0)


def sample_day(date: str = "2024-01-01", closed: bool = False) -> DayRecord:
    return DayRecord(
        date=date,
        day_start_time=T0,
        tasks=[Task("t1", "Write", "draft", "tag-a", T0, T1), Task("t2", "Email", "", "tag-b", T1)],
        day_end_time=T1 if closed else None,
    )


class TestJsonFileStore(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "data", "timeline.json")
        self.store = JsonFileStore(self.path)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_file_is_empty(self) -> None:
        self.assertIsNone(self.store.load_day("2024-01-01"))
        self.assertEqual(self.store.load_tags(), [])
        self.assertIsNone(self.store.find_open_day())

    def test_day_and_tags_share_one_document(self) -> None:
        day = sample_day()
        tags = [Tag("a", "Focus", "#ff0000")]
        self.store.save_day(day)
        self.store.save_tags(tags)

        self.assertEqual(self.store.load_day("2024-01-01"), day)
        self.assertEqual(self.store.load_tags(), tags)
        with open(self.path, encoding="utf-8") as f:
            raw = json.load(f)
        self.assertEqual(set(raw), {"2024-01-01", TAGS_KEY})
        self.assertIsNone(raw["2024-01-01"]["dayEndTime"])
        self.assertEqual(raw["2024-01-01"]["tasks"][0]["tagId"], "tag-a")

    def test_find_open_day_skips_closed_days(self) -> None:
        self.store.save_day(sample_day("2024-01-01"))
        self.store.save_day(sample_day("2024-01-02", closed=True))
        self.assertEqual(self.store.find_open_day().date, "2024-01-01")

    def test_corrupt_file_is_moved_aside(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertLogs("day_timeline", level="ERROR"):
            self.assertIsNone(self.store.load_day("2024-01-01"))
        self.assertFalse(os.path.exists(self.path))
        backups = [n for n in os.listdir(os.path.dirname(self.path)) if ".backup." in n]
        self.assertEqual(len(backups), 1)

    def test_unwritable_path_raises_storage_error(self) -> None:
        os.makedirs(self.path)  # a directory where the file should be
        with self.assertRaises(StorageError):
            self.store.save_tags([])


class TestMemoryStore(unittest.TestCase):
    def test_returns_copies(self) -> None:
        store = MemoryStore()
        day = sample_day()
        store.save_day(day)
        loaded = store.load_day(day.date)
        loaded.tasks[0].title = "changed"
        self.assertEqual(store.load_day(day.date).tasks[0].title, "Write")

    def test_optional_capabilities(self) -> None:
        store = MemoryStore()
        for name in ("subscribe_day", "subscribe_tags", "find_open_day"):
            self.assertTrue(store.supports(name))
        self.assertTrue(JsonFileStore("unused.json").supports("find_open_day"))
        self.assertFalse(JsonFileStore("unused.json").supports("subscribe_day"))

    def test_subscribers_get_saved_day(self) -> None:
        store = MemoryStore()
        seen = []
        store.subscribe_day("2024-01-01", seen.append)
        store.save_day(sample_day("2024-01-02"))
        store.save_day(sample_day("2024-01-01"))
        self.assertEqual([d.date for d in seen], ["2024-01-01"])


if __name__ == "__main__":
    unittest.main()
