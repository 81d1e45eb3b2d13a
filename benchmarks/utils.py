"""Utilities for benchmark data generation and tree creation."""

import random
from typing import Any, List, Tuple

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cow_btree import BTree


def build_btree(pairs: List[Tuple[Any, Any]], max_node_size: int) -> BTree:
    """
    Build a BTree by inserting each (key, value) pair in order.

    This is the setup phase - not timed in benchmarks.
    """
    tree = BTree(max_node_size=max_node_size)
    tree_set = tree.set
    for key, value in pairs:
        tree_set(key, value)
    return tree


def generate_random_pairs(n: int, seed: int) -> List[Tuple[int, str]]:
    """
    Generate deterministic random pairs with unique keys.

    This is the setup phase - not timed in benchmarks.

    Raises:
        ValueError: If key-space is too small for requested n
    """
    rng = random.Random(seed)

    # Key space: 2^24 = 16,777,216 unique values
    space = 1 << 24
    if space <= n:
        raise ValueError(f"Key-space too small! Required: {n + 1}, Available: {space}")

    indices = rng.sample(range(space), k=n)
    return [(idx, f"val_{idx}") for idx in indices]


def random_btree_of_size(n: int, max_node_size: int, seed: int) -> Tuple[BTree, List[Tuple[int, str]]]:
    """
    Create a random BTree with n pairs.

    Returns:
        (tree, pairs) so the verify phase can compare contents.
    """
    pairs = generate_random_pairs(n, seed)
    return build_btree(pairs, max_node_size), pairs
