"""Utility functions for testing BTree invariants."""

from typing import Optional

from cow_btree.btree_base import BTree
from cow_btree.invariants import TREE_FLAGS
from cow_btree.tree_stats import Stats


def assert_tree_invariants_tc(tc, t: BTree, stats: Stats, err_msg: Optional[str] = "") -> None:
    """TestCase version: use inside unittest.TestCase methods."""
    for flag in TREE_FLAGS:
        tc.assertTrue(
            getattr(stats, flag),
            f"Invariant failed: {flag} is False \n\n{err_msg}"
        )

    tc.assertEqual(
        stats.item_count, t.size,
        f"Invariant failed: item_count={stats.item_count} ≠ size={t.size}\n\n{err_msg}"
    )
    if t.size:
        tc.assertGreater(
            stats.leaf_count, 0,
            f"Invariant failed: leaf_count={stats.leaf_count} ≤ 0 for non-empty tree\n\n{err_msg}"
        )
        tc.assertGreater(
            stats.item_slot_count, 0,
            f"Invariant failed: item_slot_count={stats.item_slot_count} ≤ 0 for non-empty tree\n\n{err_msg}"
        )
        tc.assertIsNotNone(
            stats.least_key,
            f"Invariant failed: least_key is None for non-empty tree\n\n{err_msg}"
        )
        tc.assertIsNotNone(
            stats.greatest_key,
            f"Invariant failed: greatest_key is None for non-empty tree\n\n{err_msg}"
        )
    else:
        tc.assertEqual(
            stats.height, 0,
            f"Invariant failed: empty tree has height {stats.height}\n\n{err_msg}"
        )
