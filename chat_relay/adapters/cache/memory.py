import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from chat_relay.domain.ports.response_cache import ResponseCachePort

logger = logging.getLogger(__name__)


class InMemoryResponseCache(ResponseCachePort):
    """
    Bounded LRU cache with a fixed time-to-live per entry.

    Expired entries are purged lazily when read. Never raises: any internal
    failure is logged and reported as a miss.
    """

    def __init__(
        self,
        max_entries: int = 100,
        ttl_s: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: 'OrderedDict[str, Tuple[str, float]]' = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    return None
                value, expires_at = entry
                if self._clock() >= expires_at:
                    del self._entries[key]
                    return None
                self._entries.move_to_end(key)
                return value
        except Exception:
            logger.warning('[cache] get failed; treating as miss', exc_info=True)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with self._lock:
                self._entries[key] = (value, self._clock() + self.ttl_s)
                self._entries.move_to_end(key)
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
        except Exception:
            logger.warning('[cache] set failed; entry dropped', exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
