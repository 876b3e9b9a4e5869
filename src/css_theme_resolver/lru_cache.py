"""
Bounded least-recently-used cache.
Keeps memory flat in long-running processes that parse many files.
"""
from collections import OrderedDict
from typing import Any, Generic, Hashable, TypeVar

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class _NotFound:
    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Any = _NotFound()


class LRUCache(Generic[K, V]):
    """Capacity-bounded key/value cache with recency-ordered eviction.

    ``get`` on a missing key returns ``NOT_FOUND`` (or the supplied default),
    so a stored ``None`` stays distinguishable from absence. Entries never
    expire on their own; they are only evicted when a new key arrives at
    capacity.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self._max_size = max_size
        self._data: 'OrderedDict[K, V]' = OrderedDict()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: K, default: Any = NOT_FOUND) -> Any:
        if key not in self._data:
            return default
        self._data.move_to_end(key)
        return self._data[key]

    def set(self, key: K, value: V) -> None:
        if key in self._data:
            self._data[key] = value
            self._data.move_to_end(key)
            return

        if len(self._data) >= self._max_size:
            self._data.popitem(last=False)
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        # Membership checks do not count as a use.
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
