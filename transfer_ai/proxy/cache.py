# proxy/cache.py
"""
Response cache for the rates proxy.

In-process TTL cache with a key cap; when REDIS_URL is configured the
entries live in Redis instead (keys prefixed, TTL enforced by Redis).
Hit/miss counters are always kept in-process.
"""

import json
import time
from collections import OrderedDict
from typing import Optional, Dict, Any, List, Tuple

import redis
from loguru import logger

from ..config import settings

REDIS_PREFIX = "rates_proxy:"


class TTLCache:
    """Key -> JSON-able value with per-entry expiry"""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_keys: Optional[int] = None,
        redis_url: Optional[str] = None
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.CACHE_TTL_SECONDS
        self.max_keys = max_keys if max_keys is not None else settings.CACHE_MAX_KEYS
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.redis_client: Optional[redis.Redis] = None

        url = redis_url if redis_url is not None else settings.REDIS_URL
        if url:
            try:
                self.redis_client = redis.Redis.from_url(url, decode_responses=True)
                self.redis_client.ping()
                logger.info(f"Proxy cache using Redis at {url}")
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed, using in-process cache: {e}")
                self.redis_client = None

    def get(self, key: str) -> Optional[Any]:
        value = self._get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def _get(self, key: str) -> Optional[Any]:
        if self.redis_client:
            try:
                raw = self.redis_client.get(REDIS_PREFIX + key)
                return json.loads(raw) if raw else None
            except redis.RedisError as e:
                logger.error(f"Redis cache get error: {e}")
                return None

        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any):
        if self.redis_client:
            try:
                self.redis_client.setex(REDIS_PREFIX + key, self.ttl_seconds, json.dumps(value))
            except redis.RedisError as e:
                logger.error(f"Redis cache set error: {e}")
            return

        if key not in self._entries and len(self._entries) >= self.max_keys:
            self._purge_expired()
            if len(self._entries) >= self.max_keys:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted {evicted[:80]}")

        self._entries[key] = (time.monotonic() + self.ttl_seconds, value)
        self._entries.move_to_end(key)

    def _purge_expired(self):
        now = time.monotonic()
        for key in [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]:
            del self._entries[key]

    def keys(self) -> List[str]:
        if self.redis_client:
            try:
                return [k[len(REDIS_PREFIX):] for k in self.redis_client.scan_iter(match=REDIS_PREFIX + "*")]
            except redis.RedisError as e:
                logger.error(f"Redis cache keys error: {e}")
                return []

        self._purge_expired()
        return list(self._entries)

    def clear(self):
        if self.redis_client:
            try:
                stale = list(self.redis_client.scan_iter(match=REDIS_PREFIX + "*"))
                if stale:
                    self.redis_client.delete(*stale)
            except redis.RedisError as e:
                logger.error(f"Redis cache clear error: {e}")
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        logger.info("Proxy cache cleared")

    def stats(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "keys": len(self.keys())}
