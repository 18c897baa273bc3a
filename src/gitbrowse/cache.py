"""Object cache for decoded repository objects.

Values are stored pickled, the way a persistent cache backend would hold
them, so an object only keeps across a cache round-trip what its
``__getstate__`` declares.
"""

from __future__ import annotations

import logging
import pickle
import threading
from collections import OrderedDict
from typing import Any

logger = logging.getLogger(__name__)


class ObjectCache:
    """Key/value cache interface.

    Subclasses implement :meth:`get`, :meth:`set`, :meth:`delete` and
    :meth:`clear`.  Keys are strings such as ``"project|repo.git|tree|<sha>"``.
    """

    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryCache(ObjectCache):
    """In-process cache of pickled values.

    Args:
        max_items: Evict the least recently stored key once more than this
            many keys are held.  ``None`` means unbounded.
    """

    def __init__(self, max_items: int | None = None):
        if max_items is not None and max_items < 1:
            raise ValueError(f"max_items must be positive, got {max_items}")
        self._max_items = max_items
        self._data: OrderedDict[str, bytes] = OrderedDict()
        self._guard = threading.Lock()

    def __repr__(self) -> str:
        return f"MemoryCache(len={len(self)}, max_items={self._max_items})"

    @property
    def max_items(self) -> int | None:
        return self._max_items

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Any | None:
        with self._guard:
            blob = self._data.get(key)
        if blob is None:
            logger.debug("cache miss: %s", key)
            return None
        logger.debug("cache hit: %s", key)
        return pickle.loads(blob)

    def set(self, key: str, value: Any) -> None:
        blob = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        with self._guard:
            self._data[key] = blob
            self._data.move_to_end(key)
            if self._max_items is not None:
                while len(self._data) > self._max_items:
                    evicted, _ = self._data.popitem(last=False)
                    logger.debug("cache evict: %s", evicted)

    def delete(self, key: str) -> None:
        with self._guard:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._guard:
            self._data.clear()
