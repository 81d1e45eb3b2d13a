"""
cow_btree: in-memory B+ tree ordered map with copy-on-write cloning.

Quick-start imports::

    from cow_btree import BTree, create_btree
"""

from cow_btree.base import (
    DEFAULT_MAX_NODE_SIZE,
    DELETE,
    BTreeError,
    InvalidKeyError,
    ScanAction,
    StateError,
)
from cow_btree.btree_base import BTree
from cow_btree.bulk_create import bulk_load
from cow_btree.cursor import BTreeCursor
from cow_btree.factory import create_btree

# Stats & invariants
from cow_btree.invariants import InvariantError, check_entries_in_order
from cow_btree.tree_stats import Stats, btree_stats_
from cow_btree.utils import default_compare, key_compare, reverse_compare

__all__ = [
    "BTree",
    "BTreeCursor",
    "BTreeError",
    "DEFAULT_MAX_NODE_SIZE",
    "DELETE",
    "InvalidKeyError",
    "InvariantError",
    "ScanAction",
    "Stats",
    "StateError",
    "btree_stats_",
    "bulk_load",
    "check_entries_in_order",
    "create_btree",
    "default_compare",
    "key_compare",
    "reverse_compare",
]
