"""Correctness verification for benchmark data structures."""

import logging
from typing import Any, List, Optional, Tuple

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cow_btree import BTree, Stats, check_entries_in_order
from cow_btree.invariants import TREE_FLAGS


def verify_invariants(tree: BTree, stats: Stats) -> bool:
    """
    Check all tree invariants.

    This is the verify phase - not timed in benchmarks.

    Returns:
        True if all invariants pass, False otherwise
    """
    all_passed = True

    # Check boolean invariants
    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            logging.error("Invariant failed: %s is False", flag)
            all_passed = False

    # Check non-empty tree invariants
    if tree.size:
        if stats.item_count != tree.size:
            logging.error(
                "Invariant failed: item_count=%d ≠ size=%d",
                stats.item_count, tree.size
            )
            all_passed = False
        if stats.least_key is None or stats.greatest_key is None:
            logging.error("Invariant failed: least/greatest key is None for non-empty tree")
            all_passed = False
    elif stats.height != 0:
        logging.error("Invariant failed: empty tree has height %d", stats.height)
        all_passed = False

    return all_passed


def verify_contents(
    tree: BTree,
    expected_pairs: Optional[List[Tuple[Any, Any]]] = None,
) -> bool:
    """
    Check key order and, optionally, that the tree holds exactly expected_pairs.

    This is the verify phase - not timed in benchmarks.
    """
    expected_keys = None if expected_pairs is None else [k for k, _ in expected_pairs]
    keys, presence_ok, order_ok = check_entries_in_order(tree, expected_keys)
    if not order_ok:
        logging.error("Leaf keys are not in order")
    if not presence_ok:
        logging.error("Expected %d keys, found %d", len(expected_keys), len(keys))
    values_ok = True
    if expected_pairs is not None and presence_ok:
        for key, value in expected_pairs:
            if tree.get(key) != value:
                logging.error("Value mismatch for key %r", key)
                values_ok = False
                break
    return order_ok and presence_ok and values_ok
