"""
Comparer helpers and the comparer-driven binary search used by the nodes.
"""
from typing import Any, Callable, List, Optional, Tuple

from cow_btree.base import InvalidKeyError

Comparer = Callable[[Any, Any], int]


def default_compare(a: Any, b: Any) -> int:
    """
    Natural ordering through ``<`` and ``==``.

    Raises:
        InvalidKeyError: If the two keys are mutually unordered (NaN).
        TypeError: If the types cannot be ordered at all.
    """
    if a < b:
        return -1
    if b < a:
        return 1
    if a == b:
        return 0
    raise InvalidKeyError(f"cannot order keys {a!r} and {b!r}")


def reverse_compare(compare: Optional[Comparer] = None) -> Comparer:
    """Return a comparer that orders keys descending."""
    cmp = compare or default_compare

    def _reversed(a, b):
        return cmp(b, a)

    return _reversed


def key_compare(key_func: Callable[[Any], Any], compare: Optional[Comparer] = None) -> Comparer:
    """
    Build a comparer ordering keys by ``key_func(key)``, like ``sorted(key=...)``.
    """
    cmp = compare or default_compare

    def _by_key(a, b):
        return cmp(key_func(a), key_func(b))

    return _by_key


def binary_search(keys: List[Any], key: Any, compare: Comparer) -> Tuple[int, bool]:
    """
    Locate key in a sorted list.

    Returns:
        (index, found): index of the match if found, otherwise the
        position at which key would be inserted.
    """
    lo = 0
    hi = len(keys)
    while lo < hi:
        mid = (lo + hi) >> 1
        c = compare(keys[mid], key)
        if c < 0:
            lo = mid + 1
        elif c > 0:
            hi = mid
        elif c == 0:
            return mid, True
        else:
            raise InvalidKeyError(f"BTree found an invalid key: {key!r}")
    return lo, False
