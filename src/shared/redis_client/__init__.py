"""Redis client wrapper with pub/sub support.

Database Layout:
- DB 0: PubSub, Events (fedcluster:events:*)
"""

from .client import CHANNEL_PREFIX, RedisClient, RedisDB

__all__ = [
    "CHANNEL_PREFIX",
    "RedisClient",
    "RedisDB",
]
