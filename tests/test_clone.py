"""Tests for copy-on-write cloning"""
# pylint: skip-file

import time
import unittest

from cow_btree import DELETE, BTree, ScanAction, btree_stats_, create_btree
from tests.test_base import BaseTestCase, BaseTreeTestCase
from tests.logconfig import logger


class TestCloneIsolation(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.tree = self.make_tree(range(100))

    def test_clone_shares_root_until_first_mutation(self):
        clone = self.tree.clone()
        self.assertIs(clone._root, self.tree._root)
        self.assertTrue(self.tree._root.is_shared)
        clone.set(1000, "x")
        self.assertIsNot(clone._root, self.tree._root)
        self.validate_tree(clone)

    def test_mutating_clone_leaves_original_unchanged(self):
        before = self.tree.to_array()
        clone = self.tree.clone()
        for k in range(0, 100, 2):
            clone.remove(k)
        for k in range(100, 150):
            clone.set(k, "new")
        clone.set(1, "changed")
        clone.range_update(20, 40, False, lambda k, v, c: ScanAction.replace(-v))
        self.assertEqual(self.tree.to_array(), before)
        self.assertEqual(clone.size, 100)
        self.assertEqual(clone.get(1), "changed")
        self.assertEqual(clone.get(21), -210)
        self.assertEqual(self.tree.get(21), 210)
        self.validate_tree(clone)

    def test_mutating_original_leaves_clone_unchanged(self):
        clone = self.tree.clone()
        before = clone.to_array()
        self.tree.remove_range(10, 90)
        self.tree.set(-1, "neg")
        self.assertEqual(clone.to_array(), before)
        self.assertEqual(self.tree.size, 21)
        self.validate_tree(clone, before)

    def test_clear_does_not_affect_clone(self):
        clone = self.tree.clone()
        self.tree.clear()
        self.assertEqual(clone.size, 100)
        self.assertEqual(list(clone.keys()), list(range(100)))

    def test_clone_chain(self):
        second = self.tree.clone()
        third = second.clone()
        second.remove_range(0, 50)
        third.extend((k, "third") for k in range(200, 210))
        self.tree.range_update(0, 100, False, lambda k, v, c: DELETE if k % 10 else None)
        self.assertEqual(second.size, 50)
        self.assertEqual(third.size, 110)
        self.assertEqual(self.tree.size, 10)
        self.assertEqual(third.get(5), 50)
        self.assertEqual(second.get(55), 550)
        self.validate_tree(second)
        self.validate_tree(third)

    def test_clone_of_empty_tree(self):
        empty = BTree(max_node_size=4)
        clone = empty.clone()
        clone.set(1, "one")
        self.assertEqual(empty.size, 0)
        self.assertEqual(clone.size, 1)

    def test_clone_keeps_configuration(self):
        clone = self.tree.clone()
        self.assertEqual(clone.max_node_size, self.tree.max_node_size)
        self.assertIs(clone.compare, self.tree.compare)
        self.assertFalse(clone.is_frozen)

    def test_forced_clone_shares_nothing(self):
        clone = self.tree.clone(force=True)
        self.assertIsNot(clone._root, self.tree._root)
        self.assertEqual(btree_stats_(clone).shared_node_count, 0)
        self.assertFalse(self.tree._root.is_shared)
        clone.remove_range(0, 50)
        self.assertEqual(self.tree.size, 100)
        self.validate_tree(clone)

    def test_only_mutated_path_is_copied(self):
        clone = self.tree.clone()
        clone.range_update(50, 50, True, lambda k, v, c: ScanAction.replace("changed"))
        stats = btree_stats_(clone)
        # root is private again; untouched subtrees are still flagged
        self.assertFalse(clone._root.is_shared)
        self.assertGreater(stats.shared_node_count, 0)
        leaves_before = {id(leaf) for leaf in self.tree.iter_leaf_nodes()}
        leaves_after = {id(leaf) for leaf in clone.iter_leaf_nodes()}
        self.assertEqual(len(leaves_after - leaves_before), 1)


class TestLargeClone(BaseTestCase):

    def test_clone_of_large_tree_is_constant_time(self):
        tree = create_btree(((k, k) for k in range(100_000)), presorted=True)
        start = time.perf_counter()
        clone = tree.clone()
        elapsed = time.perf_counter() - start
        logger.debug("clone of %d pairs took %.6fs", tree.size, elapsed)
        self.assertIs(clone._root, tree._root)
        self.assertTrue(tree._root.is_shared)
        self.assertEqual(clone.size, 100_000)

        clone.set(-1, -1)
        self.assertFalse(tree.contains(-1))
        self.assertTrue(clone.contains(-1))
        self.assertEqual(tree.size, 100_000)
        self.validate_tree(clone)


if __name__ == "__main__":
    unittest.main()
