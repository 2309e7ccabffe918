from functools import lru_cache

from chat_relay.adapters.cache.memory import InMemoryResponseCache
from chat_relay.settings import settings


@lru_cache(maxsize=1)
def get_response_cache() -> InMemoryResponseCache:
    # single, per-process cache shared by every turn
    return InMemoryResponseCache(
        max_entries=settings.CACHE_MAX_ENTRIES,
        ttl_s=settings.CACHE_TTL_S,
    )
