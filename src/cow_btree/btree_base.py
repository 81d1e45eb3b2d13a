"""B+ tree ordered map with copy-on-write node sharing"""

from __future__ import annotations
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from cow_btree.base import (
    DELETE,
    AbstractOrderedMapping,
    ScanAction,
    StateError,
    clamp_max_node_size,
    debug_log,
)
from cow_btree.cursor import BTreeCursor
from cow_btree.nodes import EMPTY_LEAF, InternalNode, LeafNode, Node, OnFound
from cow_btree.utils import Comparer, binary_search, default_compare

Pair = Tuple[Any, Any]

_MISSING = object()


def _delete_pair(key, value, counter):
    return DELETE


class BTree(AbstractOrderedMapping):
    """
    An ordered map stored as a B+ tree.

    All pairs live in the leaves, which sit at the same depth. Internal
    nodes route by caching the maximum key of each child. ``clone()`` is
    O(1): both trees share the root, which is flagged as shared, and
    whichever tree mutates first copies only the nodes on its mutation
    path.

    Attributes:
        max_node_size (int): Branching factor, clamped to 4..256.
        compare (Comparer): Total order over the keys.
    """
    __slots__ = ("_root", "_count", "_max_node_size", "_compare", "_frozen")

    def __init__(
        self,
        entries: Optional[Iterable[Pair]] = None,
        compare: Optional[Comparer] = None,
        max_node_size: Optional[int] = None,
    ):
        """
        Args:
            entries: Initial (key, value) pairs, inserted one by one.
            compare: Function returning a negative, zero or positive int.
                Defaults to the natural ordering of the keys.
            max_node_size: Maximum pairs per leaf / children per internal
                node. None or < 4 selects 64, > 256 is capped at 256.
        """
        self._root: Node = EMPTY_LEAF
        self._count = 0
        self._max_node_size = clamp_max_node_size(max_node_size)
        self._compare: Comparer = compare or default_compare
        self._frozen = False
        if entries is not None:
            self.extend(entries)

    # ── properties ────────────────────────────────────────────────

    @property
    def size(self) -> int:
        """Number of key-value pairs in the tree."""
        return self._count

    @property
    def max_node_size(self) -> int:
        return self._max_node_size

    @property
    def compare(self) -> Comparer:
        return self._compare

    @property
    def height(self) -> int:
        """Number of internal levels above the leaves (0 if the root is a leaf)."""
        node = self._root
        height = 0
        while not node.is_leaf:
            height += 1
            node = node.children[0]
        return height

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def __str__(self):
        return f"BTree({self.to_array()!r})"

    __repr__ = __str__

    # ── reading ───────────────────────────────────────────────────

    def get(self, key: Any, default: Any = None) -> Any:
        """
        Finds a pair in the tree and returns the associated value.

        Args:
            key: The key to search for.
            default: Returned when the key is absent.

        Returns:
            The value, or default if the key was not found. O(log n).
        """
        compare = self._compare
        node = self._root
        while not node.is_leaf:
            i = binary_search(node.keys, key, compare)[0]
            if i >= len(node.children):
                return default
            node = node.children[i]
        i, found = binary_search(node.keys, key, compare)
        return node.values[i] if found else default

    def contains(self, key: Any) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def min_key(self) -> Any:
        """Lowest key, or None for an empty tree. O(log n)."""
        return self._root.min_key()

    def max_key(self) -> Any:
        """Highest key, or None for an empty tree. O(1): the root caches it."""
        return self._root.max_key()

    def lower_bound(self, key: Any = None) -> Optional[Pair]:
        """
        Returns the next pair whose key is larger than key, or None.
        With key=None the lowest pair is returned.
        """
        if key is None:
            return self._root.min_pair()
        return self._root.pair_or_next_higher(key, self._compare, False)

    def upper_bound(self, key: Any = None) -> Optional[Pair]:
        """
        Returns the next pair whose key is smaller than key, or None.
        With key=None the highest pair is returned.
        """
        if key is None:
            return self._root.max_pair()
        return self._root.pair_or_next_lower(key, self._compare, False)

    def floor(self, key: Any) -> Optional[Pair]:
        """The pair for key if present, otherwise the next lower pair, or None."""
        return self._root.pair_or_next_lower(key, self._compare, True)

    def ceiling(self, key: Any) -> Optional[Pair]:
        """The pair for key if present, otherwise the next higher pair, or None."""
        return self._root.pair_or_next_higher(key, self._compare, True)

    # ── iteration ─────────────────────────────────────────────────

    def cursor(self, key: Any = None, reverse: bool = False, skip_key: bool = False) -> BTreeCursor:
        """
        Create a cursor over a snapshot of the tree.

        Args:
            key: Starting bound; None starts at the first (or last) pair.
            reverse: Iterate in descending order.
            skip_key: Descending only: do not include key itself.

        The current root is flagged as shared, so mutations made while the
        cursor is alive copy the nodes they touch and the cursor keeps
        seeing the tree as it was when it was created.
        """
        root = self._root
        root.is_shared = True
        if key is None:
            return BTreeCursor.at_last(root) if reverse else BTreeCursor.at_first(root)
        if reverse:
            return BTreeCursor.seek_le(root, key, self._compare, inclusive=not skip_key)
        return BTreeCursor.seek_ge(root, key, self._compare)

    def entries(self, lowest_key: Any = None) -> Iterator[Pair]:
        """
        Iterate pairs in ascending order, starting at lowest_key (or the
        next higher key if it is absent).
        """
        return self.cursor(lowest_key)

    def reversed(self, highest_key: Any = None, skip_highest: bool = False) -> Iterator[Pair]:
        """
        Iterate pairs in descending order, starting at highest_key (or the
        next lower key if it is absent). If skip_highest is set and
        highest_key exists, that pair is not yielded. skip_highest is
        ignored when highest_key is None.
        """
        return self.cursor(highest_key, reverse=True, skip_key=skip_highest)

    def keys(self, first_key: Any = None) -> Iterator[Any]:
        return (key for key, _ in self.entries(first_key))

    def values(self, first_key: Any = None) -> Iterator[Any]:
        return (value for _, value in self.entries(first_key))

    def __reversed__(self) -> Iterator[Pair]:
        return self.reversed()

    def iter_leaf_nodes(self) -> Iterator[LeafNode]:
        """Yield the leaves from left to right (read-only access)."""
        stack: List[Node] = [self._root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield node
            else:
                stack.extend(reversed(node.children))

    def to_array(self) -> List[Pair]:
        """All pairs sorted by key."""
        if self._count == 0:
            return []
        return self.keys_range(self.min_key(), self.max_key(), True)

    # ── range scans ───────────────────────────────────────────────

    def _range_is_empty(self, low: Any, high: Any, include_high: bool) -> bool:
        c = self._compare(low, high)
        return c > 0 or (c == 0 and not include_high)

    def keys_range(
        self, low: Any, high: Any, include_high: bool = False, max_length: Optional[int] = None
    ) -> List[Pair]:
        """
        Builds a list of pairs for low <= key < high (or <= high when
        include_high is set), sorted by key.

        Args:
            max_length: Stop once the list holds this many pairs.

        Returns:
            List of (key, value) tuples. O(len(result) + log n).
        """
        results: List[Pair] = []
        if (max_length is not None and max_length <= 0) or self._range_is_empty(low, high, include_high):
            return results
        stop = ScanAction.stop()

        def collect(key, value, counter):
            results.append((key, value))
            if max_length is not None and len(results) >= max_length:
                return stop
            return None

        self._root.for_range(low, high, include_high, False, self, 0, collect)
        return results

    def range_for_each(
        self,
        low: Any,
        high: Any,
        include_high: bool,
        on_found: Optional[OnFound] = None,
        initial_counter: int = 0,
    ) -> Any:
        """
        Scans low <= key < high (or <= high) in ascending order.

        on_found(key, value, counter) is called for every pair; returning
        ScanAction.stop(r) ends the scan early with result r; any other
        return value is ignored. The callback must not modify the tree.

        Returns:
            initial_counter plus the number of pairs visited, or r.
        """
        if self._range_is_empty(low, high, include_high):
            return initial_counter
        result = self._root.for_range(low, high, include_high, False, self, initial_counter, on_found)
        if isinstance(result, ScanAction):
            return result.break_with
        return result

    # ── mutation ──────────────────────────────────────────────────

    def _check_mutable(self) -> None:
        if self._frozen:
            raise StateError("Attempted to modify a frozen BTree")

    def _writable_root(self) -> Node:
        root = self._root
        if root.is_shared:
            root = self._root = root.clone()
        return root

    def _insert(self, key: Any, value: Any, overwrite: bool) -> bool:
        self._check_mutable()
        root = self._writable_root()
        result = root.set(key, value, overwrite, self)
        if result is True or result is False:
            return result
        # the root split: the tree grows by one level
        self._root = InternalNode([root, result])
        debug_log("Root split, height is now %d", self.height)
        return True

    def set(self, key: Any, value: Any) -> bool:
        """
        Adds or overwrites a key-value pair.

        When overwriting, the stored key object is replaced as well as the
        value; this matters only for keys carrying data that does not
        affect their sort order.

        Returns:
            True if a new pair was added. O(log n).
        """
        return self._insert(key, value, True)

    def add(self, key: Any) -> bool:
        """
        Adds key with the value None if it is absent.

        An existing pair (key object and value) is left untouched.

        Returns:
            True if the key was added.
        """
        return self._insert(key, None, False)

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __getitem__(self, key: Any) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __delitem__(self, key: Any) -> None:
        if not self.remove(key):
            raise KeyError(key)

    def extend(self, entries: Iterable[Pair]) -> int:
        """
        Adds all pairs from an iterable of (key, value) pairs.

        Later duplicates overwrite earlier ones.

        Returns:
            The number of keys that were not present before.
        """
        self._check_mutable()
        added = 0
        for key, value in entries:
            if self._insert(key, value, True):
                added += 1
        return added

    def range_update(
        self,
        low: Any,
        high: Any,
        include_high: bool,
        on_found: OnFound,
        initial_counter: int = 0,
    ) -> Any:
        """
        Scans low <= key < high (or <= high) and edits pairs in place.

        on_found(key, value, counter) may return a ScanAction: ``value``
        replaces the value, ``delete`` removes the pair, ``break_with`` stops the scan (combinable with either edit).
        Any other return value, None included, leaves the pair alone.
        The callback must not touch the tree itself (insert, remove,
        clone); shared nodes along the scan are copied before it runs.

        Returns:
            initial_counter plus the number of pairs visited, or the
            break_with value.
        """
        self._check_mutable()
        if self._range_is_empty(low, high, include_high):
            return initial_counter
        root = self._writable_root()
        count_before = self._count
        try:
            result = root.for_range(low, high, include_high, True, self, initial_counter, on_found)
        finally:
            self._collapse_root()
        if count_before != self._count:
            debug_log("range_update removed %d pairs, size=%d", count_before - self._count, self._count)
        if isinstance(result, ScanAction):
            return result.break_with
        return result

    def _collapse_root(self) -> None:
        """Drop internal roots with fewer than two children."""
        root = self._root
        shared = False
        while not root.is_leaf and len(root.children) <= 1:
            shared = shared or root.is_shared
            root = root.children[0] if root.children else EMPTY_LEAF
            debug_log("Root collapsed")
        # a root below a shared ancestor is itself shared
        if shared:
            root.is_shared = True
        self._root = root

    def remove(self, key: Any) -> bool:
        """
        Removes a single pair.

        Returns:
            True if the key was found and removed. O(log n).
        """
        return self.range_update(key, key, True, _delete_pair) != 0

    def remove_range(self, low: Any, high: Any, include_high: bool = False) -> int:
        """
        Removes all pairs with low <= key < high (or <= high).

        Returns:
            The number of pairs removed.
        """
        return self.range_update(low, high, include_high, _delete_pair)

    def remove_keys(self, keys: Iterable[Any]) -> int:
        """Removes each key; returns how many were present."""
        self._check_mutable()
        removed = 0
        for key in keys:
            if self.remove(key):
                removed += 1
        return removed

    def clear(self) -> None:
        """Empties the tree. Clones sharing nodes with it are not affected."""
        self._check_mutable()
        self._root = EMPTY_LEAF
        self._count = 0

    # ── cloning & freezing ────────────────────────────────────────

    def clone(self, force: bool = False) -> BTree:
        """
        Returns a copy of the tree.

        By default the copy is O(1): the root is flagged as shared and both
        trees copy nodes lazily when they mutate them. With force=True
        every node is copied immediately and nothing is shared.
        """
        result = self.__class__(compare=self._compare, max_node_size=self._max_node_size)
        if force:
            result._root = self._root.deep_clone()
        else:
            self._root.is_shared = True
            result._root = self._root
        result._count = self._count
        debug_log("Cloned tree of size %d (force=%s)", self._count, force)
        return result

    def freeze(self) -> None:
        """Makes every mutating method raise StateError until unfreeze()."""
        self._frozen = True
        debug_log("Tree frozen")

    def unfreeze(self) -> None:
        self._frozen = False
        debug_log("Tree unfrozen")

    # ── validation ────────────────────────────────────────────────

    def check_valid(self) -> None:
        """
        Validate every structural invariant in O(n).

        Raises:
            InvariantError: On the first violated invariant.
        """
        # Lazy imports to break circular dependency
        from cow_btree.invariants import assert_tree_invariants_raise
        from cow_btree.tree_stats import btree_stats_

        assert_tree_invariants_raise(self, btree_stats_(self))
