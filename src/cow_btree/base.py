from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Iterator, Optional, Tuple, TypeVar
import logging

from cow_btree.logging_config import get_logger

# Get logger for this module
logger = get_logger("BTree")

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_MAX_NODE_SIZE = 64
MIN_MAX_NODE_SIZE = 4
MAX_MAX_NODE_SIZE = 256


def clamp_max_node_size(max_node_size: Optional[int]) -> int:
    """
    Normalize a requested branching factor.

    Values below MIN_MAX_NODE_SIZE (or None) fall back to the default,
    values above MAX_MAX_NODE_SIZE are capped. Nothing is rejected.
    """
    if max_node_size is None or max_node_size < MIN_MAX_NODE_SIZE:
        return DEFAULT_MAX_NODE_SIZE
    return min(int(max_node_size), MAX_MAX_NODE_SIZE)


class BTreeError(Exception):
    """Base class for errors raised by cow_btree."""


class StateError(BTreeError):
    """Raised when a mutating operation is attempted on a frozen tree."""


class InvalidKeyError(BTreeError, KeyError):
    """Raised when the comparer cannot order a key (e.g. NaN)."""


class _NotSet:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_SET"

    def __bool__(self) -> bool:
        return False


NOT_SET: Any = _NotSet()


@dataclass(frozen=True)
class ScanAction:
    """
    Instruction returned by a range callback.

    Attributes:
        value: New value for the current pair (NOT_SET keeps the old one).
        delete: Remove the current pair.
        break_with: Stop the scan; the scan returns this value.
    """
    value: Any = NOT_SET
    delete: bool = False
    break_with: Any = NOT_SET

    @property
    def stops(self) -> bool:
        return self.break_with is not NOT_SET

    @classmethod
    def stop(cls, result: Any = None) -> "ScanAction":
        return cls(break_with=result)

    @classmethod
    def replace(cls, value: Any) -> "ScanAction":
        return cls(value=value)


DELETE = ScanAction(delete=True)


class AbstractOrderedMapping(ABC, Generic[K, V]):
    """
    Abstract base class for an ordered mapping of keys to values.
    """

    @abstractmethod
    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """
        Return the value associated with key, or default if it is absent.
        """

    @abstractmethod
    def set(self, key: K, value: V) -> bool:
        """
        Add or overwrite a pair.

        Returns:
            bool: True if a new pair was added.
        """

    @abstractmethod
    def add(self, key: K) -> bool:
        """Add key with an empty value if it is absent."""

    @abstractmethod
    def remove(self, key: K) -> bool:
        """Remove key; True if it was present."""

    @abstractmethod
    def contains(self, key: K) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def keys(self) -> Iterator[K]:
        pass

    @abstractmethod
    def values(self) -> Iterator[V]:
        pass

    @abstractmethod
    def entries(self) -> Iterator[Tuple[K, V]]:
        pass

    def is_empty(self) -> bool:
        return self.size == 0

    def __len__(self) -> int:
        return self.size

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __contains__(self, key: K) -> bool:
        return self.contains(key)

    def __iter__(self) -> Iterator[Tuple[K, V]]:
        return self.entries()


def debug_log(message, *args, **kwargs):
    """Log a debug message only if debug logging is enabled"""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(message, *args, **kwargs)
