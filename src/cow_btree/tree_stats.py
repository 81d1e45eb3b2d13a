"""Statistics and invariant flags for B+ tree structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cow_btree.logging_config import get_logger

if TYPE_CHECKING:
    from cow_btree.btree_base import BTree
    from cow_btree.nodes import Node

logger = get_logger(__name__)


@dataclass
class Stats:
    """Aggregated statistics for a B+ tree."""

    height: int
    node_count: int
    leaf_count: int
    internal_count: int
    item_count: int
    item_slot_count: int
    shared_node_count: int
    fill_factor: float
    least_key: Any | None
    greatest_key: Any | None
    is_balanced: bool
    keys_in_order: bool
    separators_match: bool
    sizes_within_max: bool
    occupancy_met: bool
    count_matches: bool


def btree_stats_(t: BTree) -> Stats:
    """
    Returns aggregated statistics for a B+ tree in **O(n)** time.

    ``item_slot_count`` is the number of pair slots the leaves could hold
    (leaf count times max_node_size), so ``fill_factor`` is the share of
    them in use. Nodes below a shared node are counted as shared only when
    their own flag is set.
    """
    compare = t.compare
    max_size = t.max_node_size
    min_size = (max_size + 1) >> 1
    root = t._root

    stats = Stats(
        height=t.height,
        node_count=0,
        leaf_count=0,
        internal_count=0,
        item_count=0,
        item_slot_count=0,
        shared_node_count=0,
        fill_factor=0.0,
        least_key=None,
        greatest_key=None,
        is_balanced=True,
        keys_in_order=True,
        separators_match=True,
        sizes_within_max=True,
        occupancy_met=True,
        count_matches=True,
    )

    leaf_depth = None
    prev_key = None
    have_prev = False

    # ---------- depth-first, left to right ------------------------
    stack: list[tuple[Node, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        stats.node_count += 1
        if node.is_shared:
            stats.shared_node_count += 1

        size = len(node.keys)
        if node is not root and size < min_size:
            stats.occupancy_met = False

        if node.is_leaf:
            stats.leaf_count += 1
            stats.item_count += size
            stats.item_slot_count += max_size
            if size > max_size or len(node.values) != size:
                stats.sizes_within_max = False
            if leaf_depth is None:
                leaf_depth = depth
            elif leaf_depth != depth:
                stats.is_balanced = False
            for key in node.keys:
                if have_prev and compare(prev_key, key) >= 0:
                    stats.keys_in_order = False
                prev_key = key
                have_prev = True
            continue

        stats.internal_count += 1
        children = node.children
        if len(children) > max_size:
            stats.sizes_within_max = False
        if len(children) != size or not children:
            stats.separators_match = False
        for key, child in zip(node.keys, children):
            child_max = child.max_key()
            if child_max is None or compare(key, child_max) != 0:
                stats.separators_match = False
        for child in reversed(children):
            stack.append((child, depth + 1))

    # ---------- aggregate ----------------------------------------
    if stats.item_count:
        stats.least_key = t.min_key()
        stats.greatest_key = t.max_key()
    if stats.item_slot_count:
        stats.fill_factor = stats.item_count / stats.item_slot_count
    stats.count_matches = stats.item_count == t.size
    return stats
