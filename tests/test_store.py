"""
Widget Store Tests
==================
Direct tests for WidgetStore: CRUD semantics, id generation and
locking under concurrent writers.

Usage:
    python -m pytest tests/test_store.py -v
"""
import os
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

from store import IdGenerationError, WidgetStore


# ─────────────────────────────────────────────
#  CRUD
# ─────────────────────────────────────────────

class TestWidgetStore(unittest.TestCase):

    def setUp(self):
        self.store = WidgetStore()

    def test_starts_empty(self):
        self.assertEqual(self.store.list(), [])
        self.assertEqual(len(self.store), 0)

    def test_create_assigns_id(self):
        widget = self.store.create("a", "b")
        self.assertTrue(widget.id)
        self.assertEqual(widget.name, "a")
        self.assertEqual(widget.description, "b")
        self.assertIn(widget.id, self.store)

    def test_get_returns_created(self):
        widget = self.store.create("a", "b")
        self.assertEqual(self.store.get(widget.id), widget)

    def test_get_missing(self):
        self.assertIsNone(self.store.get("nope"))

    def test_update_keeps_id(self):
        widget = self.store.create("a", "b")
        updated = self.store.update(widget.id, "c", "d")
        self.assertEqual(updated.id, widget.id)
        self.assertEqual((updated.name, updated.description), ("c", "d"))
        self.assertEqual(self.store.get(widget.id), updated)

    def test_update_missing_leaves_store(self):
        self.store.create("a", "b")
        self.assertIsNone(self.store.update("nope", "c", "d"))
        self.assertEqual(len(self.store), 1)
        self.assertNotIn("nope", self.store)

    def test_delete_returns_last_value(self):
        widget = self.store.create("a", "b")
        self.assertEqual(self.store.delete(widget.id), widget)
        self.assertIsNone(self.store.get(widget.id))
        self.assertIsNone(self.store.delete(widget.id))

    def test_list_contains_all(self):
        ids = {self.store.create(f"w{i}", "").id for i in range(5)}
        self.assertEqual({w.id for w in self.store.list()}, ids)


# ─────────────────────────────────────────────
#  Id generation
# ─────────────────────────────────────────────

class TestIdGeneration(unittest.TestCase):

    def test_failing_factory(self):
        def boom():
            raise OSError("no entropy")

        store = WidgetStore(id_factory=boom)
        with self.assertRaises(IdGenerationError):
            store.create("a", "b")
        self.assertEqual(len(store), 0)

    def test_empty_id_rejected(self):
        store = WidgetStore(id_factory=lambda: "  ")
        with self.assertRaises(IdGenerationError):
            store.create("a", "b")

    def test_collision_is_regenerated(self):
        ids = iter(["same", "same", "other"])
        store = WidgetStore(id_factory=lambda: next(ids))
        first = store.create("a", "")
        second = store.create("b", "")
        self.assertEqual(first.id, "same")
        self.assertEqual(second.id, "other")

    def test_constant_factory_gives_up(self):
        store = WidgetStore(id_factory=lambda: "fixed")
        store.create("a", "")
        with self.assertRaises(IdGenerationError):
            store.create("b", "")
        self.assertEqual(len(store), 1)


# ─────────────────────────────────────────────
#  Concurrency
# ─────────────────────────────────────────────

class TestConcurrentWrites(unittest.TestCase):

    def test_parallel_creates(self):
        store = WidgetStore()
        with ThreadPoolExecutor(max_workers=16) as pool:
            widgets = list(pool.map(lambda i: store.create(f"w{i}", "d"), range(100)))
        ids = {w.id for w in widgets}
        self.assertEqual(len(ids), 100)
        self.assertEqual(len(store), 100)
        self.assertEqual({w.id for w in store.list()}, ids)


if __name__ == "__main__":
    unittest.main()
