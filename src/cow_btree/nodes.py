"""B+ tree node implementation (leaf and internal nodes)"""
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple, Union

from cow_btree.base import NOT_SET, ScanAction
from cow_btree.utils import Comparer, binary_search

if TYPE_CHECKING:
    from cow_btree.btree_base import BTree


OnFound = Callable[[Any, Any, int], Optional[ScanAction]]
Pair = Tuple[Any, Any]


class LeafNode:
    """
    A leaf of the B+ tree.

    Stores up to ``max_node_size`` pairs as two parallel lists sorted by
    the tree's comparer. ``is_shared`` is set when the node may be
    reachable from more than one tree; such a node is cloned before it is
    mutated. Sharing is transitive: everything below a shared node is
    shared as well, whether or not its own flag is set.
    """
    __slots__ = ("keys", "values", "is_shared")

    is_leaf = True

    def __init__(self, keys: Optional[list] = None, values: Optional[list] = None):
        self.keys: list = keys if keys is not None else []
        self.values: list = values if values is not None else []
        self.is_shared: bool = False

    def __repr__(self) -> str:
        flag = ", shared" if self.is_shared else ""
        return f"LeafNode(keys={self.keys!r}{flag})"

    # ── reading ───────────────────────────────────────────────────

    def max_key(self) -> Any:
        return self.keys[-1] if self.keys else None

    def min_key(self) -> Any:
        return self.keys[0] if self.keys else None

    def min_pair(self) -> Optional[Pair]:
        if not self.keys:
            return None
        return self.keys[0], self.values[0]

    def max_pair(self) -> Optional[Pair]:
        if not self.keys:
            return None
        return self.keys[-1], self.values[-1]

    def pair_or_next_lower(self, key: Any, compare: Comparer, inclusive: bool) -> Optional[Pair]:
        i, found = binary_search(self.keys, key, compare)
        j = i if (found and inclusive) else i - 1
        if j >= 0:
            return self.keys[j], self.values[j]
        return None

    def pair_or_next_higher(self, key: Any, compare: Comparer, inclusive: bool) -> Optional[Pair]:
        i, found = binary_search(self.keys, key, compare)
        j = i + 1 if (found and not inclusive) else i
        if j < len(self.keys):
            return self.keys[j], self.values[j]
        return None

    # ── copying ───────────────────────────────────────────────────

    def clone(self) -> "LeafNode":
        return LeafNode(self.keys[:], self.values[:])

    def deep_clone(self) -> "LeafNode":
        return self.clone()

    # ── insertion & splitting ─────────────────────────────────────

    def set(self, key: Any, value: Any, overwrite: bool, tree: "BTree") -> Union[bool, "LeafNode"]:
        """
        Insert or overwrite a pair in this (exclusive) leaf.

        Returns:
            False if the key already existed, True if it was inserted, or
            the new right sibling if the leaf had to split.
        """
        keys = self.keys
        i, found = binary_search(keys, key, tree._compare)
        if found:
            if overwrite:
                # the key object is replaced too; only its sort order must match
                keys[i] = key
                self.values[i] = value
            return False

        keys.insert(i, key)
        self.values.insert(i, value)
        tree._count += 1
        if len(keys) > tree._max_node_size:
            return self.split_off_right_side()
        return True

    def split_off_right_side(self) -> "LeafNode":
        # parent must update its copy of this node's max key
        half = len(self.keys) >> 1
        right = LeafNode(self.keys[half:], self.values[half:])
        del self.keys[half:]
        del self.values[half:]
        return right

    def take_from_right(self, rhs: "LeafNode", n: int = 1) -> None:
        self.keys.extend(rhs.keys[:n])
        self.values.extend(rhs.values[:n])
        del rhs.keys[:n]
        del rhs.values[:n]

    def take_from_left(self, lhs: "LeafNode", n: int = 1) -> None:
        self.keys[0:0] = lhs.keys[-n:]
        self.values[0:0] = lhs.values[-n:]
        del lhs.keys[-n:]
        del lhs.values[-n:]

    def merge_sibling(self, rhs: "LeafNode", tree: "BTree") -> None:
        """Append the whole content of rhs; rhs itself is left unchanged."""
        self.keys.extend(rhs.keys)
        self.values.extend(rhs.values)

    # ── scanning & deletion ───────────────────────────────────────

    def for_range(
        self,
        low: Any,
        high: Any,
        include_high: bool,
        edit: bool,
        tree: "BTree",
        count: int,
        on_found: Optional[OnFound],
    ) -> Union[int, ScanAction]:
        """
        Visit the pairs of this leaf with low <= key < high (or <= high).

        Returns the advanced counter, or the ScanAction that stopped the scan.
        """
        compare = tree._compare
        keys = self.keys
        i = binary_search(keys, low, compare)[0]
        i_high, found = binary_search(keys, high, compare)
        if found and include_high:
            i_high += 1

        if on_found is None:
            return count + max(0, i_high - i)

        values = self.values
        while i < i_high:
            key = keys[i]
            result = on_found(key, values[i], count)
            count += 1
            if not isinstance(result, ScanAction):
                i += 1
                continue
            if edit:
                assert keys[i] is key and not self.is_shared, \
                    "BTree illegally changed or cloned during range_update"
                if result.delete:
                    del keys[i]
                    del values[i]
                    tree._count -= 1
                    i_high -= 1
                    if result.stops:
                        return result
                    continue
                if result.value is not NOT_SET:
                    values[i] = result.value
            if result.stops:
                return result
            i += 1
        return count


class InternalNode:
    """
    An internal (routing) node of the B+ tree.

    ``keys[i]`` caches the maximum key reachable through ``children[i]``,
    so both lists always have the same length and the last key of the
    root is the maximum key of the tree.
    """
    __slots__ = ("keys", "children", "is_shared")

    is_leaf = False

    def __init__(self, children: List[Union[LeafNode, "InternalNode"]], keys: Optional[list] = None):
        # children are not marked shared here; callers that alias them must do it
        if keys is None:
            keys = [child.max_key() for child in children]
        self.keys: list = keys
        self.children: List[Union[LeafNode, InternalNode]] = children
        self.is_shared: bool = False

    def __repr__(self) -> str:
        flag = ", shared" if self.is_shared else ""
        return f"InternalNode(keys={self.keys!r}{flag})"

    # ── reading ───────────────────────────────────────────────────

    def max_key(self) -> Any:
        return self.keys[-1] if self.keys else None

    def min_key(self) -> Any:
        return self.children[0].min_key() if self.children else None

    def min_pair(self) -> Optional[Pair]:
        return self.children[0].min_pair() if self.children else None

    def max_pair(self) -> Optional[Pair]:
        return self.children[-1].max_pair() if self.children else None

    def pair_or_next_lower(self, key: Any, compare: Comparer, inclusive: bool) -> Optional[Pair]:
        i = binary_search(self.keys, key, compare)[0]
        children = self.children
        if i >= len(children):
            return self.max_pair()
        result = children[i].pair_or_next_lower(key, compare, inclusive)
        if result is None and i > 0:
            return children[i - 1].max_pair()
        return result

    def pair_or_next_higher(self, key: Any, compare: Comparer, inclusive: bool) -> Optional[Pair]:
        i = binary_search(self.keys, key, compare)[0]
        children = self.children
        if i >= len(children):
            return None
        result = children[i].pair_or_next_higher(key, compare, inclusive)
        if result is None and i + 1 < len(children):
            return children[i + 1].min_pair()
        return result

    # ── copying ───────────────────────────────────────────────────

    def clone(self) -> "InternalNode":
        """Shallow copy; the children become reachable from two parents."""
        children = self.children[:]
        for child in children:
            child.is_shared = True
        return InternalNode(children, self.keys[:])

    def deep_clone(self) -> "InternalNode":
        return InternalNode([child.deep_clone() for child in self.children], self.keys[:])

    def writable_child(self, i: int) -> Union[LeafNode, "InternalNode"]:
        """Return children[i], replacing it by a private copy first if it is shared."""
        child = self.children[i]
        if child.is_shared:
            child = child.clone()
            self.children[i] = child
        return child

    # ── insertion & splitting ─────────────────────────────────────

    def set(self, key: Any, value: Any, overwrite: bool, tree: "BTree") -> Union[bool, "InternalNode"]:
        children = self.children
        keys = self.keys
        max_size = tree._max_node_size
        compare = tree._compare
        i = min(binary_search(keys, key, compare)[0], len(children) - 1)
        child = self.writable_child(i)

        if len(child.keys) >= max_size:
            # A full child would split. Shifting one entry into a non-full
            # neighbour avoids that, provided the new key still lands in child.
            if (i > 0 and len(children[i - 1].keys) < max_size
                    and compare(child.keys[0], key) < 0):
                other = self.writable_child(i - 1)
                other.take_from_right(child)
                keys[i - 1] = other.max_key()
            elif (i + 1 < len(children) and len(children[i + 1].keys) < max_size
                    and compare(key, child.keys[-2]) < 0):
                other = self.writable_child(i + 1)
                other.take_from_left(child)
                keys[i] = child.max_key()

        result = child.set(key, value, overwrite, tree)
        keys[i] = child.max_key()
        if result is True or result is False:
            return result

        # child split; result is its new right sibling
        children.insert(i + 1, result)
        keys.insert(i + 1, result.max_key())
        if len(children) > max_size:
            return self.split_off_right_side()
        return True

    def split_off_right_side(self) -> "InternalNode":
        half = len(self.children) >> 1
        right = InternalNode(self.children[half:], self.keys[half:])
        del self.children[half:]
        del self.keys[half:]
        return right

    def take_from_right(self, rhs: "InternalNode", n: int = 1) -> None:
        self.keys.extend(rhs.keys[:n])
        self.children.extend(rhs.children[:n])
        del rhs.keys[:n]
        del rhs.children[:n]

    def take_from_left(self, lhs: "InternalNode", n: int = 1) -> None:
        self.keys[0:0] = lhs.keys[-n:]
        self.children[0:0] = lhs.children[-n:]
        del lhs.keys[-n:]
        del lhs.children[-n:]

    def merge_sibling(self, rhs: "InternalNode", tree: "BTree") -> None:
        """
        Move the children of rhs into this node.

        rhs must be dropped from its parent afterwards. Children of a
        shared rhs are implicitly shared; now that they also hang below
        this exclusive node, they get the flag explicitly.
        """
        old_length = len(self.children)
        if rhs.is_shared:
            for child in rhs.children:
                child.is_shared = True
        self.keys.extend(rhs.keys)
        self.children.extend(rhs.children)
        # a lone undersized grandchild may now sit next to a sibling
        self.repair_children(max(old_length - 1, 0), min(old_length, len(self.children) - 1), tree)

    # ── scanning & deletion ───────────────────────────────────────

    def for_range(
        self,
        low: Any,
        high: Any,
        include_high: bool,
        edit: bool,
        tree: "BTree",
        count: int,
        on_found: Optional[OnFound],
    ) -> Union[int, ScanAction]:
        compare = tree._compare
        keys = self.keys
        children = self.children
        i_low = binary_search(keys, low, compare)[0]
        i_high = min(binary_search(keys, high, compare)[0], len(keys) - 1)

        if not edit:
            for i in range(i_low, i_high + 1):
                result = children[i].for_range(low, high, include_high, edit, tree, count, on_found)
                if isinstance(result, ScanAction):
                    return result
                count = result
            return count

        if i_low > i_high:
            return count
        last = i_low
        try:
            for i in range(i_low, i_high + 1):
                last = i
                child = self.writable_child(i)
                result = child.for_range(low, high, include_high, edit, tree, count, on_found)
                # an emptied child leaves None here until repair_children drops it
                keys[i] = child.max_key()
                if isinstance(result, ScanAction):
                    return result
                count = result
        finally:
            # deletions may have left children undersized or empty
            self.repair_children(i_low, last, tree)
        return count

    # ── rebalancing ───────────────────────────────────────────────

    def repair_children(self, lo: int, hi: int, tree: "BTree") -> None:
        """
        Restore occupancy of children[lo..hi] after deletions.

        Walks right to left so that joins never shift an index still to
        be visited. Empty children are dropped; children at or below half
        capacity are merged with a neighbour when the result fits, or
        evened out against it when they are below the minimum.
        """
        children = self.children
        keys = self.keys
        half = tree._max_node_size >> 1
        for i in range(min(hi, len(children) - 1), lo - 1, -1):
            size = len(children[i].keys)
            if size == 0:
                del children[i]
                del keys[i]
                continue
            keys[i] = children[i].max_key()
            if size <= half:
                self._rebalance_child(i, tree)

    def _rebalance_child(self, i: int, tree: "BTree") -> None:
        children = self.children
        n = len(children)
        if n < 2:
            return
        max_size = tree._max_node_size
        min_size = (max_size + 1) >> 1
        size = len(children[i].keys)
        left = len(children[i - 1].keys) if i > 0 else None
        right = len(children[i + 1].keys) if i + 1 < n else None

        if right is not None and size + right <= max_size:
            self._join_children(i, tree)
        elif left is not None and left + size <= max_size:
            self._join_children(i - 1, tree)
        elif size < min_size:
            # borrow from the larger neighbour
            if right is not None and (left is None or right >= left):
                self._join_children(i, tree)
            else:
                self._join_children(i - 1, tree)

    def _join_children(self, i: int, tree: "BTree") -> None:
        """
        Fold children[i + 1] into children[i].

        If the result exceeds max_node_size it is split evenly again, which
        amounts to borrowing; both halves then hold at least the minimum.
        """
        children = self.children
        lhs = self.writable_child(i)
        lhs.merge_sibling(children[i + 1], tree)
        if len(lhs.keys) > tree._max_node_size:
            right = lhs.split_off_right_side()
            children[i + 1] = right
            self.keys[i + 1] = right.max_key()
        else:
            del children[i + 1]
            del self.keys[i + 1]
        self.keys[i] = lhs.max_key()


Node = Union[LeafNode, InternalNode]

# Shared by every empty tree; being shared it is cloned before the first insert.
EMPTY_LEAF = LeafNode()
EMPTY_LEAF.is_shared = True
