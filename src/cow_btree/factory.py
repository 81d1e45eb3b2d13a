"""BTree factory module."""

from typing import Any, Iterable, Optional, Tuple

from cow_btree.base import DEFAULT_MAX_NODE_SIZE
from cow_btree.btree_base import BTree
from cow_btree.bulk_create import bulk_load
from cow_btree.utils import Comparer


def create_btree(
    entries: Optional[Iterable[Tuple[Any, Any]]] = None,
    compare: Optional[Comparer] = None,
    max_node_size: int = DEFAULT_MAX_NODE_SIZE,
    presorted: bool = False,
) -> BTree:
    """
    Create a new BTree, optionally filled with entries.

    Args:
        entries: Initial (key, value) pairs.
        compare: Key comparer (natural ordering if omitted).
        max_node_size: Branching factor, clamped to 4..256.
        presorted: The entries are strictly increasing; build the tree
            bottom-up instead of inserting one pair at a time.

    Returns:
        The new tree.
    """
    tree = BTree(compare=compare, max_node_size=max_node_size)
    if entries is not None:
        if presorted:
            bulk_load(tree, entries)
        else:
            tree.extend(entries)
    return tree
