"""Tests for freeze / unfreeze"""
# pylint: skip-file

import unittest

from cow_btree import DELETE, StateError, bulk_load
from tests.test_base import BaseTreeTestCase


class TestFreeze(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.tree = self.make_tree(range(20))
        self.tree.freeze()

    def test_every_mutator_raises(self):
        before = self.tree.to_array()
        mutators = {
            "set": lambda t: t.set(100, "x"),
            "set_existing": lambda t: t.set(1, "x"),
            "add": lambda t: t.add(100),
            "remove": lambda t: t.remove(1),
            "remove_missing": lambda t: t.remove(1000),
            "clear": lambda t: t.clear(),
            "extend": lambda t: t.extend([(100, "x")]),
            "extend_empty": lambda t: t.extend([]),
            "range_update": lambda t: t.range_update(0, 10, False, lambda k, v, c: DELETE),
            "remove_range": lambda t: t.remove_range(0, 10),
            "remove_keys": lambda t: t.remove_keys([1, 2]),
            "setitem": lambda t: t.__setitem__(100, "x"),
            "delitem": lambda t: t.__delitem__(1),
            "bulk_load": lambda t: bulk_load(t, [(1, 1)]),
        }
        for name, mutate in mutators.items():
            with self.subTest(mutator=name):
                with self.assertRaises(StateError):
                    mutate(self.tree)
                self.assertEqual(self.tree.to_array(), before)

    def test_reads_still_work(self):
        self.assertTrue(self.tree.is_frozen)
        self.assertEqual(self.tree.get(3), 30)
        self.assertTrue(self.tree.contains(19))
        self.assertEqual(len(list(self.tree.entries())), 20)
        self.assertEqual(self.tree.keys_range(0, 3), [(0, 0), (1, 10), (2, 20)])
        self.assertEqual(self.tree.range_for_each(0, 19, True), 20)
        self.assertEqual(self.tree.floor(100), (19, 190))

    def test_unfreeze_restores_mutability(self):
        self.tree.unfreeze()
        self.assertFalse(self.tree.is_frozen)
        self.assertTrue(self.tree.set(100, "x"))
        self.assertTrue(self.tree.remove(0))
        self.expected_item_count = 20

    def test_clone_of_frozen_tree_is_mutable(self):
        clone = self.tree.clone()
        self.assertFalse(clone.is_frozen)
        clone.set(100, "x")
        self.assertFalse(self.tree.contains(100))

    def test_freeze_is_idempotent(self):
        self.tree.freeze()
        self.tree.unfreeze()
        self.tree.unfreeze()
        self.tree.set(50, "y")
        self.assertEqual(self.tree.size, 21)


if __name__ == "__main__":
    unittest.main()
