import dataclasses
import unittest

from day_timeline.errors import StorageError, ValidationError
from day_timeline.storage import MemoryStore
from day_timeline.tags import TagRegistry


class BrokenTagStore(MemoryStore):
    def save_tags(self, tags) -> None:
        raise StorageError("offline")


class TestTagRegistry(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.registry = TagRegistry(self.store)

    def test_create_appends_and_persists(self) -> None:
        focus = self.registry.create_tag("Focus", "#ff0000")
        email = self.registry.create_tag("Email", "#00ff00")
        self.assertEqual(self.registry.list_tags(), [focus, email])
        self.assertEqual(self.store.load_tags(), [focus, email])
        self.assertIs(self.registry.find_tag(email.id), email)
        self.assertIsNone(self.registry.find_tag("missing"))

    def test_duplicate_names_get_distinct_ids(self) -> None:
        red = self.registry.create_tag("Focus", "#ff0000")
        green = self.registry.create_tag("Focus", "#00ff00")
        self.assertNotEqual(red.id, green.id)
        self.assertEqual(self.registry.find_tag(red.id).color, "#ff0000")
        self.assertEqual(self.registry.find_tag(green.id).color, "#00ff00")

    def test_existing_tags_unchanged_by_new_ones(self) -> None:
        first = self.registry.create_tag("Deep work", "#123456")
        snapshot = (first.id, first.name, first.color)
        for i in range(5):
            self.registry.create_tag(f"tag {i}", "#abcdef")
        found = self.registry.find_tag(snapshot[0])
        self.assertEqual((found.id, found.name, found.color), snapshot)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            found.name = "changed"

    def test_validation(self) -> None:
        for name, color in (("", "#ffffff"), ("   ", "#ffffff"), ("Ok", "red"), ("Ok", "#fff")):
            with self.assertRaises(ValidationError):
                self.registry.create_tag(name, color)
        self.assertEqual(self.registry.list_tags(), [])

    def test_search_is_case_insensitive_substring(self) -> None:
        self.registry.create_tag("Deep Work", "#111111")
        self.registry.create_tag("Email", "#222222")
        self.registry.create_tag("Homework", "#333333")
        self.assertEqual([t.name for t in self.registry.search_tags("WORK")], ["Deep Work", "Homework"])
        self.assertEqual([t.name for t in self.registry.search_tags("")],
                         ["Deep Work", "Email", "Homework"])
        self.assertEqual(list(self.registry.search_tags("zzz")), [])

    def test_search_reflects_new_tags(self) -> None:
        self.registry.create_tag("Read", "#111111")
        self.assertEqual(len(list(self.registry.search_tags("read"))), 1)
        self.registry.create_tag("Reading list", "#222222")
        self.assertEqual(len(list(self.registry.search_tags("read"))), 2)

    def test_loads_existing_tags(self) -> None:
        tag = self.registry.create_tag("Focus", "#ff0000")
        reopened = TagRegistry(self.store)
        self.assertEqual(reopened.list_tags(), [tag])

    def test_storage_failure_keeps_tag_in_memory(self) -> None:
        errors = []
        registry = TagRegistry(BrokenTagStore(), on_storage_error=errors.append)
        with self.assertLogs("day_timeline", level="ERROR"):
            tag = registry.create_tag("Focus", "#ff0000")
        self.assertEqual(registry.list_tags(), [tag])
        self.assertEqual(len(errors), 1)

    def test_attach_follows_other_writers(self) -> None:
        self.assertTrue(self.registry.attach())
        other = TagRegistry(self.store)
        tag = other.create_tag("Shared", "#00aaff")
        self.assertEqual(self.registry.list_tags(), [tag])


if __name__ == "__main__":
    unittest.main()
