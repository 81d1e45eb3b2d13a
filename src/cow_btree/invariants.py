"""Shared invariant-checking utilities.

This module provides tree invariant validation that can be used by
``BTree.check_valid``, the stats scripts and the test suite alike.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cow_btree.logging_config import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from cow_btree.btree_base import BTree
    from cow_btree.tree_stats import Stats

TREE_FLAGS = (
    "is_balanced",
    "keys_in_order",
    "separators_match",
    "sizes_within_max",
    "occupancy_met",
    "count_matches",
)


class InvariantError(Exception):
    """Raised when a B+ tree invariant is violated."""


def assert_tree_invariants_raise(
    t: BTree,
    stats: Stats,
) -> None:
    """Check all invariants, raising :class:`InvariantError` on the first failure."""
    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            raise InvariantError(f"Invariant failed: {flag} is False")

    if t.size:
        if stats.leaf_count <= 0:
            raise InvariantError(f"Invariant failed: leaf_count={stats.leaf_count} ≤ 0 for non-empty tree")
        if stats.item_count != t.size:
            raise InvariantError(f"Invariant failed: item_count={stats.item_count} ≠ t.size={t.size}")
        if stats.least_key is None:
            raise InvariantError("Invariant failed: least_key is None for non-empty tree")
    elif stats.height != 0:
        raise InvariantError(f"Invariant failed: empty tree has height {stats.height}")


def check_entries_in_order(
    tree: BTree,
    expected_keys: list[Any] | None = None,
) -> tuple[list[Any], bool, bool]:
    """Traverse leaf nodes and validate their keys.

    Returns
    -------
    (keys, presence_ok, order_ok)
    """
    compare = tree.compare
    keys: list[Any] = []
    order_ok = True

    for leaf in tree.iter_leaf_nodes():
        for key in leaf.keys:
            if keys and compare(keys[-1], key) >= 0:
                order_ok = False
            keys.append(key)

    presence_ok = True
    if expected_keys is not None:
        if len(keys) != len(expected_keys):
            presence_ok = False
        else:
            presence_ok = sorted(keys) == sorted(expected_keys)

    return keys, presence_ok, order_ok
