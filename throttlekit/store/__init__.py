"""
Counter/state stores for rate limiting.
"""

from throttlekit.store.base import CounterStore
from throttlekit.store.config import RedisStoreSettings, get_redis_store_settings
from throttlekit.store.memory_store import InMemoryStore
from throttlekit.store.redis_client import RedisClient
from throttlekit.store.redis_store import RedisStore

__all__ = [
    "CounterStore",
    "InMemoryStore",
    "RedisClient",
    "RedisStore",
    "RedisStoreSettings",
    "get_redis_store_settings",
]
