"""Tests for ordered iteration and the explicit cursor"""
# pylint: skip-file

import unittest

from cow_btree import BTree, BTreeCursor
from tests.test_base import BaseTreeTestCase


class TestEntries(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.tree = self.make_tree([2, 4, 6, 8])

    def test_entries_ascending(self):
        self.assertEqual(list(self.tree.entries()), [(2, 20), (4, 40), (6, 60), (8, 80)])
        self.assertEqual(list(self.tree), list(self.tree.entries()))

    def test_entries_from_existing_key(self):
        self.assertEqual([k for k, _ in self.tree.entries(4)], [4, 6, 8])

    def test_entries_from_absent_key_starts_at_next_higher(self):
        self.assertEqual([k for k, _ in self.tree.entries(5)], [6, 8])
        self.assertEqual([k for k, _ in self.tree.entries(1)], [2, 4, 6, 8])
        self.assertEqual(list(self.tree.entries(9)), [])

    def test_reversed(self):
        self.assertEqual([k for k, _ in self.tree.reversed()], [8, 6, 4, 2])
        self.assertEqual([k for k, _ in reversed(self.tree)], [8, 6, 4, 2])

    def test_reversed_from_bound(self):
        self.assertEqual([k for k, _ in self.tree.reversed(6)], [6, 4, 2])
        self.assertEqual([k for k, _ in self.tree.reversed(6, skip_highest=True)], [4, 2])
        self.assertEqual([k for k, _ in self.tree.reversed(5)], [4, 2])
        self.assertEqual([k for k, _ in self.tree.reversed(5, skip_highest=True)], [4, 2])
        self.assertEqual([k for k, _ in self.tree.reversed(100)], [8, 6, 4, 2])
        self.assertEqual(list(self.tree.reversed(1)), [])
        self.assertEqual(list(self.tree.reversed(2, skip_highest=True)), [])

    def test_keys_and_values(self):
        self.assertEqual(list(self.tree.keys()), [2, 4, 6, 8])
        self.assertEqual(list(self.tree.values()), [20, 40, 60, 80])
        self.assertEqual(list(self.tree.keys(5)), [6, 8])
        self.assertEqual(list(self.tree.values(6)), [60, 80])

    def test_iterator_is_not_restartable(self):
        it = self.tree.entries()
        self.assertEqual(len(list(it)), 4)
        self.assertEqual(list(it), [])
        # a fresh one is cheap
        self.assertEqual(len(list(self.tree.entries())), 4)


class TestMultiLevelIteration(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.keys = list(range(0, 300, 3))
        shuffled = self.keys[:]
        self.rng.shuffle(shuffled)
        self.tree = self.make_tree(shuffled)

    def test_full_scan_both_directions(self):
        self.assertGreaterEqual(self.tree.height, 2)
        self.assertEqual(list(self.tree.keys()), self.keys)
        self.assertEqual([k for k, _ in self.tree.reversed()], self.keys[::-1])

    def test_every_start_bound(self):
        for start in range(-1, 302):
            with self.subTest(start=start):
                expected = [k for k in self.keys if k >= start]
                self.assertEqual(list(self.tree.keys(start)), expected)
                expected_rev = [k for k in reversed(self.keys) if k <= start]
                self.assertEqual([k for k, _ in self.tree.reversed(start)], expected_rev)
                expected_skip = [k for k in reversed(self.keys) if k < start]
                self.assertEqual([k for k, _ in self.tree.reversed(start, True)], expected_skip)

    def test_iterator_sees_snapshot(self):
        it = self.tree.entries()
        first = next(it)
        self.assertEqual(first, (0, 0))
        for k in self.keys[::2]:
            self.tree.remove(k)
        self.tree.set(1, "new")
        self.tree.set(3, "changed")
        rest = list(it)
        self.assertEqual([k for k, _ in rest], self.keys[1:])
        self.assertEqual(dict(rest)[3], 30)
        self.expected_item_count = len(self.keys) - len(self.keys[::2]) + 1

    def test_reverse_iterator_sees_snapshot(self):
        it = self.tree.reversed()
        self.tree.clear()
        self.assertEqual([k for k, _ in it], self.keys[::-1])


class TestCursor(BaseTreeTestCase):

    def setUp(self):
        super().setUp()
        self.tree = self.make_tree(range(1, 41))

    def test_advance_and_retreat(self):
        cursor = self.tree.cursor(10)
        self.assertIsInstance(cursor, BTreeCursor)
        self.assertTrue(cursor.valid)
        self.assertEqual(cursor.key, 10)
        self.assertEqual(cursor.value, 100)
        self.assertTrue(cursor.advance())
        self.assertEqual(cursor.pair(), (11, 110))
        self.assertTrue(cursor.retreat())
        self.assertTrue(cursor.retreat())
        self.assertEqual(cursor.key, 9)

    def test_walk_off_both_ends(self):
        cursor = self.tree.cursor(40)
        self.assertFalse(cursor.advance())
        self.assertFalse(cursor.valid)
        self.assertIsNone(cursor.pair())
        with self.assertRaises(IndexError):
            cursor.key
        self.assertTrue(cursor.retreat())
        self.assertEqual(cursor.key, 40)

        cursor = self.tree.cursor()
        self.assertEqual(cursor.key, 1)
        self.assertFalse(cursor.retreat())
        with self.assertRaises(IndexError):
            cursor.value
        self.assertTrue(cursor.advance())
        self.assertEqual(cursor.key, 1)

    def test_full_walk_with_retreat(self):
        cursor = self.tree.cursor(reverse=True)
        seen = []
        while cursor.valid:
            seen.append(cursor.key)
            cursor.retreat()
        self.assertEqual(seen, list(range(40, 0, -1)))

    def test_cursor_past_the_end(self):
        cursor = self.tree.cursor(1000)
        self.assertFalse(cursor.valid)
        self.assertEqual(list(cursor), [])
        self.assertTrue(cursor.retreat())
        self.assertEqual(cursor.key, 40)

    def test_cursor_at_either_end(self):
        first = BTreeCursor.at_first(self.tree._root)
        last = BTreeCursor.at_last(self.tree._root)
        self.assertEqual(first.pair(), (1, 10))
        self.assertEqual(last.pair(), (40, 400))
        self.assertEqual([k for k, _ in last], list(range(40, 0, -1)))
        self.assertEqual(self.tree.cursor(reverse=True).key, 40)

    def test_cursor_on_empty_tree(self):
        cursor = BTree().cursor()
        self.assertFalse(cursor.valid)
        self.assertFalse(cursor.advance())
        self.assertFalse(cursor.retreat())
        self.assertIn("BTreeCursor", repr(cursor))


if __name__ == "__main__":
    unittest.main()
