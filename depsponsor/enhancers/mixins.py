"""
Shared mixins for enhancer providers.

This module provides reusable mixins to avoid code duplication across providers.
"""

import logging
import threading
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class CacheableMixin:
    """
    Mixin providing a run-scoped, thread-safe lookup cache.

    Each key is computed at most once per provider instance: concurrent callers
    asking for the same key wait on a per-key lock while the first one computes
    the value, then read it from the cache.

    This mixin requires the following on the implementing class:
    - self._count(stat): thread-safe increment of a stats counter
    """

    _count: Callable[[str], None]

    def _init_cache(self) -> None:
        self._cache: Dict[str, Any] = {}
        self._cache_lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}

    def _key_lock(self, cache_key: str) -> threading.Lock:
        with self._cache_lock:
            lock = self._key_locks.get(cache_key)
            if lock is None:
                lock = self._key_locks[cache_key] = threading.Lock()
            return lock

    def _get_or_compute(self, cache_key: str, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for cache_key, computing it on first use.

        Args:
            cache_key: Unique key for the cached data
            compute: Zero-argument callable producing the value

        Returns:
            The cached or freshly computed value
        """
        with self._key_lock(cache_key):
            with self._cache_lock:
                hit = cache_key in self._cache
                value = self._cache.get(cache_key)
            if hit:
                self._count("cache_hits")
                logger.debug(f"Cache hit for '{cache_key}'")
                return value

            value = compute()

            with self._cache_lock:
                self._cache[cache_key] = value
            return value
