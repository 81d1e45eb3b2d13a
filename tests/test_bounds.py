"""Tests for min/max and the bound queries"""
# pylint: skip-file

import unittest

from cow_btree import BTree
from tests.test_base import BaseTreeTestCase


class TestBoundsSmall(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.tree = BTree([(k, k) for k in (2, 4, 6, 8)], max_node_size=4)

    def test_bound_semantics(self):
        self.assertEqual(self.tree.lower_bound(5), (6, 6))
        self.assertEqual(self.tree.upper_bound(5), (4, 4))
        self.assertEqual(self.tree.floor(5), (4, 4))
        self.assertEqual(self.tree.ceiling(5), (6, 6))
        self.assertEqual(self.tree.floor(4), (4, 4))
        self.assertEqual(self.tree.ceiling(4), (4, 4))

    def test_lower_and_upper_bound_are_exclusive(self):
        self.assertEqual(self.tree.lower_bound(4), (6, 6))
        self.assertEqual(self.tree.upper_bound(4), (2, 2))

    def test_bounds_without_key(self):
        self.assertEqual(self.tree.lower_bound(), (2, 2))
        self.assertEqual(self.tree.upper_bound(), (8, 8))

    def test_bounds_off_the_ends(self):
        self.assertIsNone(self.tree.lower_bound(8))
        self.assertIsNone(self.tree.upper_bound(2))
        self.assertIsNone(self.tree.floor(1))
        self.assertIsNone(self.tree.ceiling(9))
        self.assertEqual(self.tree.floor(100), (8, 8))
        self.assertEqual(self.tree.ceiling(-100), (2, 2))

    def test_min_max(self):
        self.assertEqual(self.tree.min_key(), 2)
        self.assertEqual(self.tree.max_key(), 8)

    def test_bounds_on_empty_tree(self):
        tree = BTree()
        self.assertIsNone(tree.lower_bound())
        self.assertIsNone(tree.upper_bound())
        self.assertIsNone(tree.lower_bound(1))
        self.assertIsNone(tree.upper_bound(1))
        self.assertIsNone(tree.floor(1))
        self.assertIsNone(tree.ceiling(1))


class TestBoundsMultiLevel(BaseTreeTestCase):
    """Bounds that cross leaf and internal node boundaries."""

    def setUp(self):
        super().setUp()
        self.keys = list(range(0, 500, 5))
        shuffled = self.keys[:]
        self.rng.shuffle(shuffled)
        self.tree = self.make_tree(shuffled)

    def test_every_search_key(self):
        keys = self.keys
        for target in range(-3, 503):
            with self.subTest(target=target):
                higher = [k for k in keys if k > target]
                lower = [k for k in keys if k < target]
                at_most = [k for k in keys if k <= target]
                at_least = [k for k in keys if k >= target]
                self.assertEqual(self.tree.lower_bound(target), (higher[0], higher[0] * 10) if higher else None)
                self.assertEqual(self.tree.upper_bound(target), (lower[-1], lower[-1] * 10) if lower else None)
                self.assertEqual(self.tree.floor(target), (at_most[-1], at_most[-1] * 10) if at_most else None)
                self.assertEqual(self.tree.ceiling(target), (at_least[0], at_least[0] * 10) if at_least else None)

    def test_min_max_after_removals(self):
        self.tree.remove(0)
        self.tree.remove(495)
        self.assertEqual(self.tree.min_key(), 5)
        self.assertEqual(self.tree.max_key(), 490)
        self.tree.remove_range(0, 250)
        self.assertEqual(self.tree.min_key(), 250)


if __name__ == "__main__":
    unittest.main()
