"""
Thread-safe memoisation of per-configuration beam data.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class CoefficientCache:
    """
    Single-flight cache: each key is built at most once at a time.

    The first caller for a key runs the builder. Concurrent callers for the
    same key block on the same Future and receive the same object. Builds
    for different keys run in parallel. A failed build is removed again, so
    its exception reaches every waiter and the next call retries.

    Entries are never evicted; they live as long as the cache.
    """

    def __init__(self, name: str = 'cache'):
        self.name = name
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Future] = {}
        self._build_count = 0

    def get_or_compute(self, key: Hashable, build: Callable[[], Any]) -> Any:
        """
        Return the entry for ``key``, building it with ``build()`` if needed.

        Raises:
            Whatever ``build`` raises
        """
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
                self._build_count += 1

        if not owner:
            return future.result()

        try:
            value = build()
        except BaseException as e:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(e)
            raise

        future.set_result(value)
        logger.info(f"{self.name}: built entry {self._build_count} for key {_short_key(key)}")
        return value

    @property
    def build_count(self) -> int:
        """Number of builds started since creation or the last clear()."""
        with self._lock:
            return self._build_count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._build_count = 0

    def __len__(self):
        with self._lock:
            return sum(1 for f in self._entries.values() if f.done())

    def __contains__(self, key):
        with self._lock:
            future = self._entries.get(key)
        return future is not None and future.done() and future.exception() is None


def _short_key(key: Hashable) -> str:
    text = repr(key)
    return text if len(text) <= 80 else text[:77] + '...'
