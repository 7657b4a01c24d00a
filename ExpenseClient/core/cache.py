"""
Time-expiring memoization of fetched results.

Entries are keyed by the serialized fetch-relevant filters (see
:meth:`ExpenseClient.data.model.FilterSet.fetch_key`) and are valid while younger than the
configured timeout. Stale entries are evicted on lookup and refetched synchronously.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Tuple


class ResultCache:
    """Memoizes supplier results per key for ``timeout`` seconds.

    Concurrent lookups of the same key run the supplier at most once; lookups of distinct keys
    never wait on each other.

    Args:
        timeout (float): Entry lifetime in seconds.
        clock (Callable[[], float]): Monotonic time source, replaceable in tests.
    """

    def __init__(self, timeout: float = 300, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
        return entry is not None and self._is_live(entry[1])

    def _is_live(self, timestamp: float) -> bool:
        return self._clock() - timestamp < self.timeout

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get(self, key: str, supplier: Callable[[], Any]) -> Any:
        """Return the live result for key, or call supplier and store its result.

        Args:
            key (str): The cache key.
            supplier (Callable[[], Any]): Produces the result on a miss.

        Returns:
            The cached or freshly supplied result.

        Raises:
            Exception: Whatever the supplier raises. Nothing is stored in that case.
        """
        with self._key_lock(key):
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None:
                    if self._is_live(entry[1]):
                        logging.debug(f'Cache hit: {key}')
                        return entry[0]
                    logging.debug(f'Cache entry expired: {key}')
                    del self._entries[key]

            logging.debug(f'Cache miss: {key}')
            result = supplier()

            with self._lock:
                self._entries[key] = (result, self._clock())
            return result

    def invalidate(self) -> None:
        """Drop every entry and the per-key locks."""
        with self._lock:
            logging.debug(f'Invalidating {len(self._entries)} cache entries')
            self._entries.clear()
            self._key_locks.clear()
