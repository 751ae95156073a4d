"""
Expiring key-value stores that hold serialized carts.

Both backends expose the same small surface: get, compare_and_set, touch,
delete, purge_expired and ping. Every successful write stores a fresh version
number; compare_and_set only writes when the caller still holds the version it
read (0 meaning "key absent"), which is what makes the cart's
read-modify-write cycle safe against concurrent writers.
"""
import itertools
import json
import threading
import time
from typing import Callable, Dict, NamedTuple, Optional, Tuple

import redis
from redis.exceptions import RedisError, WatchError

from orderflow.utils.log import get_logger

log = get_logger("cache")


class CacheEntry(NamedTuple):
    payload: str
    version: int


class InMemoryCartCache:
    """
    Process-local cache for development and tests. Expiry is evaluated lazily on
    access; purge_expired() drops stale keys in bulk (scheduled from the app).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._versions = itertools.count(1)
        # key -> (payload, version, expires_at)
        self._data: Dict[str, Tuple[str, int, float]] = {}

    def _live(self, key: str, now: float):
        item = self._data.get(key)
        if item is not None and item[2] <= now:
            del self._data[key]
            return None
        return item

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            item = self._live(key, self._clock())
            if item is None:
                return None
            return CacheEntry(item[0], item[1])

    def compare_and_set(
        self, key: str, expected_version: int, payload: str, ttl_seconds: int
    ) -> bool:
        with self._lock:
            now = self._clock()
            item = self._live(key, now)
            current = item[1] if item else 0
            if current != expected_version:
                log.debug(f"cas miss key={key!r} expected={expected_version} current={current}")
                return False
            self._data[key] = (payload, next(self._versions), now + ttl_seconds)
            return True

    def touch(self, key: str, ttl_seconds: int) -> bool:
        with self._lock:
            now = self._clock()
            item = self._live(key, now)
            if item is None:
                return False
            self._data[key] = (item[0], item[1], now + ttl_seconds)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            stale = [k for k, (_, _, exp) in self._data.items() if exp <= now]
            for k in stale:
                del self._data[k]
        if stale:
            log.info(f"purged {len(stale)} expired cart(s)")
        return len(stale)

    def ping(self) -> bool:
        return True


class RedisCartCache:
    """
    Redis-backed cache. Values are JSON envelopes {"version", "payload"} stored
    with SET ... EX; compare_and_set runs under WATCH/MULTI/EXEC so a concurrent
    write between our read and our write aborts the transaction.
    """

    VERSION_KEY_SUFFIX = "__version__"

    def __init__(self, client: "redis.Redis", key_prefix: str = "cart:"):
        self._redis = client
        self._version_key = f"{key_prefix}{self.VERSION_KEY_SUFFIX}"

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "cart:") -> "RedisCartCache":
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    @staticmethod
    def _decode(raw) -> Optional[CacheEntry]:
        if raw is None:
            return None
        envelope = json.loads(raw)
        return CacheEntry(envelope["payload"], int(envelope["version"]))

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._decode(self._redis.get(key))

    def compare_and_set(
        self, key: str, expected_version: int, payload: str, ttl_seconds: int
    ) -> bool:
        new_version = int(self._redis.incr(self._version_key))
        envelope = json.dumps({"version": new_version, "payload": payload})
        with self._redis.pipeline() as pipe:
            try:
                pipe.watch(key)
                current = self._decode(pipe.get(key))
                current_version = current.version if current else 0
                if current_version != expected_version:
                    pipe.unwatch()
                    log.debug(
                        f"cas miss key={key!r} expected={expected_version} current={current_version}"
                    )
                    return False
                pipe.multi()
                pipe.set(key, envelope, ex=ttl_seconds)
                pipe.execute()
                return True
            except WatchError:
                log.debug(f"cas watch aborted key={key!r}")
                return False

    def touch(self, key: str, ttl_seconds: int) -> bool:
        return bool(self._redis.expire(key, ttl_seconds))

    def delete(self, key: str) -> None:
        self._redis.delete(key)

    def purge_expired(self) -> int:
        # redis expires keys itself
        return 0

    def ping(self) -> bool:
        try:
            return bool(self._redis.ping())
        except RedisError:
            return False


def build_cart_cache(settings):
    if settings.CART_CACHE_URL:
        log.info("using redis cart cache")
        return RedisCartCache.from_url(settings.CART_CACHE_URL, key_prefix=settings.CART_KEY_PREFIX)
    log.info("CART_CACHE_URL not set, using in-memory cart cache")
    return InMemoryCartCache()
