"""Bottom-up bulk loading of B+ trees from presorted pairs.

Provides:
- ``bulk_load`` – fills an empty tree from strictly increasing pairs.

Internal helper ``_chunk_bounds`` splits a level into evenly sized nodes
and is not part of the public API.

Complexity: O(n) comparisons plus O(n) node construction, against
O(n log n) for inserting the pairs one by one.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Iterable, List, Tuple

from cow_btree.base import debug_log
from cow_btree.nodes import InternalNode, LeafNode, Node

if TYPE_CHECKING:
    from cow_btree.btree_base import BTree


def _chunk_bounds(n: int, max_size: int) -> List[Tuple[int, int]]:
    """
    Split n items into ceil(n / max_size) consecutive chunks whose sizes
    differ by at most one.
    """
    if n == 0:
        return []
    chunks = -(-n // max_size)
    base, extra = divmod(n, chunks)
    bounds = []
    start = 0
    for c in range(chunks):
        end = start + base + (1 if c < extra else 0)
        bounds.append((start, end))
        start = end
    return bounds


def bulk_load(tree: BTree, pairs: Iterable[Tuple[Any, Any]]) -> int:
    """
    Build the nodes of an empty tree bottom-up.

    Args:
        tree: An empty, unfrozen BTree.
        pairs: (key, value) pairs in strictly increasing key order.

    Returns:
        The number of pairs loaded.

    Raises:
        StateError: If the tree is frozen.
        ValueError: If the tree is not empty or the keys are not strictly
            increasing.
    """
    tree._check_mutable()
    if tree.size:
        raise ValueError("bulk_load() requires an empty tree")

    keys: List[Any] = []
    values: List[Any] = []
    compare = tree.compare
    for key, value in pairs:
        if keys and compare(keys[-1], key) >= 0:
            raise ValueError(f"bulk_load() keys must be strictly increasing, got {keys[-1]!r} then {key!r}")
        keys.append(key)
        values.append(value)

    n = len(keys)
    if n == 0:
        return 0

    max_size = tree.max_node_size
    level: List[Node] = [
        LeafNode(keys[start:end], values[start:end])
        for start, end in _chunk_bounds(n, max_size)
    ]
    while len(level) > 1:
        level = [
            InternalNode(level[start:end])
            for start, end in _chunk_bounds(len(level), max_size)
        ]

    tree._root = level[0]
    tree._count = n
    debug_log("Bulk loaded %d pairs, height=%d", n, tree.height)
    return n
