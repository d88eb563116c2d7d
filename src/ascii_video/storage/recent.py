"""
Recent List
===========

Fixed-capacity, most-recent-first list.

This is the eviction policy behind the output history: new items are
pushed to the front and, once capacity is exceeded, items are popped
from the back (oldest-inserted first).

Design Rules:
    - Fixed maximum size (drops oldest on overflow)
    - Order reflects insertion recency, never item contents
    - Eviction is an explicit operation (evict_overflow)
    - Does NOT persist anything
"""

import logging
from collections import deque
from typing import Callable, Deque, Generic, Iterable, List, TypeVar


logger = logging.getLogger(__name__)


T = TypeVar("T")


class RecentList(Generic[T]):
    """
    Bounded most-recent-first list.

    Attributes:
        capacity: Maximum number of items kept
        evicted_count: Number of items dropped due to overflow

    Example:
        recent = RecentList(capacity=3, items=["c", "b", "a"])
        evicted = recent.push_front("d")   # ["a"]
        list(recent)                       # ["d", "c", "b"]
    """

    def __init__(self, capacity: int = 20, items: Iterable[T] = ()) -> None:
        """
        Initialize the list.

        Args:
            capacity: Maximum items to keep. Must be >= 1.
            items: Initial items, most recent first. Overflow is evicted.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._items: Deque[T] = deque(items)
        self._evicted_count: int = 0
        self.evict_overflow()

    @property
    def capacity(self) -> int:
        """Maximum list size."""
        return self._capacity

    @property
    def evicted_count(self) -> int:
        """Number of items dropped due to overflow."""
        return self._evicted_count

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def push_front(self, item: T) -> List[T]:
        """
        Add item as the most recent, evicting the oldest on overflow.

        Returns:
            Items evicted by this push, oldest last.
        """
        self._items.appendleft(item)
        return self.evict_overflow()

    def evict_overflow(self) -> List[T]:
        """
        Pop items off the back until the length equals capacity.

        Returns:
            Evicted items in list order (oldest last).
        """
        evicted: List[T] = []
        while len(self._items) > self._capacity:
            evicted.append(self._items.pop())

        if evicted:
            evicted.reverse()
            self._evicted_count += len(evicted)
            logger.info(
                f"Recent list over capacity, evicted {len(evicted)} item(s). "
                f"Total evicted: {self._evicted_count}"
            )
        return evicted

    def remove_where(self, predicate: Callable[[T], bool]) -> int:
        """
        Remove every item matching predicate.

        Returns:
            Number of items removed.
        """
        kept = [item for item in self._items if not predicate(item)]
        removed = len(self._items) - len(kept)
        self._items = deque(kept)
        return removed

    def to_list(self) -> List[T]:
        """Items as a plain list, most recent first."""
        return list(self._items)

    def metrics(self) -> dict:
        """
        Get list metrics for observability.

        Returns:
            Dict with size, capacity, evicted_count
        """
        return {
            "size": len(self._items),
            "capacity": self._capacity,
            "evicted_count": self._evicted_count,
        }
