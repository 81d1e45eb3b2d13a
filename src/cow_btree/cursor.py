"""Explicit bidirectional cursor over the pairs of a B+ tree."""
from typing import Any, List, Optional, Tuple

from cow_btree.nodes import LeafNode, Node
from cow_btree.utils import Comparer, binary_search


class BTreeCursor:
    """
    A position inside a B+ tree.

    The cursor keeps the descent path as ``[internal node, child index]``
    pairs from the root down to the parent of the current leaf, plus the
    index within that leaf. An index of ``-1`` means "before the first
    pair", ``len(leaf.keys)`` means "past the last pair"; in both cases
    the cursor is not ``valid``.

    Used as an iterator the cursor yields ``(key, value)`` tuples and then
    moves forward (or backward when ``reverse`` is set). It is finite and
    not restartable; create a new cursor from any bound instead.
    """
    __slots__ = ("_path", "_leaf", "_index", "reverse")

    def __init__(self, root: Node, reverse: bool = False):
        self._path: List[List[Any]] = []
        self._leaf: LeafNode = None
        self._index: int = -1
        self.reverse = reverse
        self._descend(root, last=reverse)
        if reverse:
            self._index = len(self._leaf.keys) - 1
        else:
            self._index = 0

    # ── construction ──────────────────────────────────────────────

    @classmethod
    def at_first(cls, root: Node) -> "BTreeCursor":
        return cls(root)

    @classmethod
    def at_last(cls, root: Node) -> "BTreeCursor":
        return cls(root, reverse=True)

    @classmethod
    def seek_ge(cls, root: Node, key: Any, compare: Comparer) -> "BTreeCursor":
        """Cursor on the first pair whose key is >= key (ascending)."""
        cursor = cls.__new__(cls)
        cursor.reverse = False
        cursor._path = []
        node = root
        while not node.is_leaf:
            i = binary_search(node.keys, key, compare)[0]
            if i >= len(node.children):
                # key is above the maximum; park past the end
                cursor._path.append([node, len(node.children) - 1])
                cursor._descend(node.children[-1], last=True)
                cursor._index = len(cursor._leaf.keys)
                return cursor
            cursor._path.append([node, i])
            node = node.children[i]
        cursor._leaf = node
        i = binary_search(node.keys, key, compare)[0]
        if i >= len(node.keys):
            cursor._index = i - 1
            cursor.advance()
        else:
            cursor._index = i
        return cursor

    @classmethod
    def seek_le(cls, root: Node, key: Any, compare: Comparer, inclusive: bool = True) -> "BTreeCursor":
        """Cursor on the last pair whose key is <= key (< key unless inclusive), descending."""
        cursor = cls.__new__(cls)
        cursor.reverse = True
        cursor._path = []
        node = root
        while not node.is_leaf:
            i = min(binary_search(node.keys, key, compare)[0], len(node.children) - 1)
            cursor._path.append([node, i])
            node = node.children[i]
        cursor._leaf = node
        i, found = binary_search(node.keys, key, compare)
        index = i if (found and inclusive) else i - 1
        if index < 0:
            cursor._index = 0
            cursor.retreat()
        else:
            cursor._index = index
        return cursor

    def _descend(self, node: Node, last: bool) -> None:
        """Follow the leftmost (or rightmost) edge from node down to a leaf."""
        path = self._path
        while not node.is_leaf:
            i = len(node.children) - 1 if last else 0
            path.append([node, i])
            node = node.children[i]
        self._leaf = node

    # ── position ──────────────────────────────────────────────────

    @property
    def valid(self) -> bool:
        return 0 <= self._index < len(self._leaf.keys)

    @property
    def key(self) -> Any:
        if not self.valid:
            raise IndexError("cursor is not positioned on a pair")
        return self._leaf.keys[self._index]

    @property
    def value(self) -> Any:
        if not self.valid:
            raise IndexError("cursor is not positioned on a pair")
        return self._leaf.values[self._index]

    def pair(self) -> Optional[Tuple[Any, Any]]:
        if not self.valid:
            return None
        return self._leaf.keys[self._index], self._leaf.values[self._index]

    def advance(self) -> bool:
        """Move to the next pair; False (and past the end) when there is none."""
        leaf_size = len(self._leaf.keys)
        if self._index + 1 < leaf_size:
            self._index += 1
            return True
        path = self._path
        level = len(path) - 1
        while level >= 0:
            node, i = path[level]
            if i + 1 < len(node.children):
                path[level][1] = i + 1
                break
            level -= 1
        else:
            self._index = leaf_size
            return False
        del path[level + 1:]
        node = path[level][0]
        self._descend(node.children[path[level][1]], last=False)
        self._index = 0
        return True

    def retreat(self) -> bool:
        """Move to the previous pair; False (and before the start) when there is none."""
        if self._index - 1 >= 0 and self._index - 1 < len(self._leaf.keys):
            self._index -= 1
            return True
        path = self._path
        level = len(path) - 1
        while level >= 0:
            node, i = path[level]
            if i > 0:
                path[level][1] = i - 1
                break
            level -= 1
        else:
            self._index = -1
            return False
        del path[level + 1:]
        node = path[level][0]
        self._descend(node.children[path[level][1]], last=True)
        self._index = len(self._leaf.keys) - 1
        return True

    # ── iteration protocol ────────────────────────────────────────

    def __iter__(self) -> "BTreeCursor":
        return self

    def __next__(self) -> Tuple[Any, Any]:
        if not self.valid:
            raise StopIteration
        leaf = self._leaf
        pair = (leaf.keys[self._index], leaf.values[self._index])
        if self.reverse:
            self.retreat()
        else:
            self.advance()
        return pair

    def __repr__(self) -> str:
        direction = "reverse" if self.reverse else "forward"
        return f"BTreeCursor({direction}, at={self.pair()!r})"
