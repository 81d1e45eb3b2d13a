"""Tests for tree statistics, invariant helpers and pretty printing"""
# pylint: skip-file

import unittest

from cow_btree import BTree, btree_stats_, check_entries_in_order, create_btree
from cow_btree.display import SHARED_MARK, print_pretty, print_structure
from cow_btree.invariants import InvariantError, assert_tree_invariants_raise
from tests.test_base import BaseTreeTestCase


class TestStats(BaseTreeTestCase):

    def test_empty_tree_stats(self):
        stats = btree_stats_(self.tree)
        self.assertEqual(stats.height, 0)
        self.assertEqual(stats.item_count, 0)
        self.assertEqual(stats.leaf_count, 1)
        self.assertEqual(stats.internal_count, 0)
        self.assertIsNone(stats.least_key)
        self.assertIsNone(stats.greatest_key)
        self.assertEqual(stats.fill_factor, 0.0)

    def test_counts_on_bulk_loaded_tree(self):
        self.tree = create_btree(((k, k) for k in range(16)), max_node_size=4, presorted=True)
        stats = btree_stats_(self.tree)
        self.assertEqual(stats.height, 1)
        self.assertEqual(stats.leaf_count, 4)
        self.assertEqual(stats.internal_count, 1)
        self.assertEqual(stats.node_count, 5)
        self.assertEqual(stats.item_count, 16)
        self.assertEqual(stats.item_slot_count, 16)
        self.assertEqual(stats.fill_factor, 1.0)
        self.assertEqual(stats.least_key, 0)
        self.assertEqual(stats.greatest_key, 15)
        self.assertEqual(stats.shared_node_count, 0)

    def test_shared_node_count_after_clone(self):
        self.tree = self.make_tree(range(50))
        clone = self.tree.clone()
        self.assertEqual(btree_stats_(clone).shared_node_count, 1)
        clone.set(1000, 1000)
        self.assertGreater(btree_stats_(clone).shared_node_count, 1)

    def test_flags_detect_broken_separator(self):
        self.tree = self.make_tree(range(50))
        stats = btree_stats_(self.tree)
        self.assertTrue(stats.separators_match)
        broken = self.tree.clone(force=True)
        broken._root.keys[0] = -1
        stats = btree_stats_(broken)
        self.assertFalse(stats.separators_match)
        with self.assertRaises(InvariantError):
            assert_tree_invariants_raise(broken, stats)

    def test_flags_detect_underfull_node(self):
        broken = BTree(((k, k) for k in range(50)), max_node_size=4)
        leaf = next(broken.iter_leaf_nodes())
        del leaf.keys[1:]
        del leaf.values[1:]
        broken._count = sum(len(leaf.keys) for leaf in broken.iter_leaf_nodes())
        stats = btree_stats_(broken)
        self.assertFalse(stats.occupancy_met)


class TestCheckEntries(BaseTreeTestCase):

    def test_check_entries_in_order(self):
        self.tree = self.make_tree([5, 3, 9, 1])
        keys, presence_ok, order_ok = check_entries_in_order(self.tree, [1, 3, 5, 9])
        self.assertEqual(keys, [1, 3, 5, 9])
        self.assertTrue(presence_ok)
        self.assertTrue(order_ok)
        _, presence_ok, _ = check_entries_in_order(self.tree, [1, 3, 5])
        self.assertFalse(presence_ok)


class TestDisplay(BaseTreeTestCase):

    def test_print_pretty_empty(self):
        self.assertEqual(print_pretty(self.tree), "BTree: Empty")

    def test_print_pretty_levels(self):
        self.tree = create_btree(((k, k) for k in range(8)), max_node_size=4, presorted=True)
        text = print_pretty(self.tree)
        self.assertIn("BTree(size=8, height=1)", text)
        self.assertIn("Level 0: [3 | 7]", text)
        self.assertIn("Leaves: [0 | 1 | 2 | 3]  [4 | 5 | 6 | 7]", text)
        self.assertNotIn(SHARED_MARK, text)

    def test_print_pretty_marks_shared_nodes(self):
        self.tree = create_btree(((k, k) for k in range(8)), max_node_size=4, presorted=True)
        clone = self.tree.clone()
        clone.set(100, 100)
        text = print_pretty(clone)
        self.assertIn("[0 | 1 | 2 | 3]" + SHARED_MARK, text)
        coloured = print_pretty(clone, colour=True)
        self.assertIn("\033[", coloured)

    def test_print_pretty_rejects_other_types(self):
        with self.assertRaises(TypeError):
            print_pretty({1: 2})

    def test_print_structure(self):
        self.tree = self.make_tree(range(10))
        text = print_structure(self.tree)
        self.assertTrue(text.startswith("InternalNode("))
        self.assertIn("LeafNode(size=", text)


if __name__ == "__main__":
    unittest.main()
