import os
import uuid

import pytest

from orderflow.adapters.cart_cache import InMemoryCartCache, RedisCartCache, build_cart_cache
from orderflow.config import Settings


def test_set_when_absent_requires_version_zero(cart_cache):
    assert cart_cache.compare_and_set("k", 0, "a", 60)
    assert cart_cache.get("k").payload == "a"
    # key now exists, so "expected absent" no longer matches
    assert not cart_cache.compare_and_set("k", 0, "b", 60)
    assert cart_cache.get("k").payload == "a"


def test_stale_version_is_rejected(cart_cache):
    cart_cache.compare_and_set("k", 0, "a", 60)
    v1 = cart_cache.get("k").version
    assert cart_cache.compare_and_set("k", v1, "b", 60)
    assert not cart_cache.compare_and_set("k", v1, "c", 60)
    assert cart_cache.get("k").payload == "b"


def test_versions_are_not_reused_after_expiry(cart_cache, clock):
    cart_cache.compare_and_set("k", 0, "a", 10)
    old = cart_cache.get("k").version
    clock.advance(11)
    assert cart_cache.get("k") is None
    cart_cache.compare_and_set("k", 0, "b", 10)
    assert cart_cache.get("k").version != old
    assert not cart_cache.compare_and_set("k", old, "c", 10)


def test_touch_extends_ttl(cart_cache, clock):
    cart_cache.compare_and_set("k", 0, "a", 10)
    clock.advance(8)
    assert cart_cache.touch("k", 10)
    clock.advance(8)
    assert cart_cache.get("k") is not None
    assert not cart_cache.touch("missing", 10)


def test_purge_expired_drops_only_stale_keys(cart_cache, clock):
    cart_cache.compare_and_set("old", 0, "a", 5)
    cart_cache.compare_and_set("new", 0, "b", 50)
    clock.advance(10)
    assert cart_cache.purge_expired() == 1
    assert cart_cache.get("new") is not None


def test_delete(cart_cache):
    cart_cache.compare_and_set("k", 0, "a", 60)
    cart_cache.delete("k")
    cart_cache.delete("k")
    assert cart_cache.get("k") is None


def test_build_cart_cache_defaults_to_memory():
    assert isinstance(build_cart_cache(Settings(CART_CACHE_URL="")), InMemoryCartCache)


def test_build_cart_cache_uses_redis_when_url_set():
    cache = build_cart_cache(Settings(CART_CACHE_URL="redis://localhost:6379/0"))
    assert isinstance(cache, RedisCartCache)


REDIS_URL = os.environ.get("TEST_REDIS_URL")


@pytest.mark.skipif(not REDIS_URL, reason="TEST_REDIS_URL not set")
def test_redis_compare_and_set_roundtrip():
    prefix = f"test-{uuid.uuid4().hex}:"
    cache = RedisCartCache.from_url(REDIS_URL, key_prefix=prefix)
    key = f"{prefix}c1"
    try:
        assert cache.ping()
        assert cache.compare_and_set(key, 0, "a", 30)
        v1 = cache.get(key).version
        assert not cache.compare_and_set(key, 0, "b", 30)
        assert cache.compare_and_set(key, v1, "b", 30)
        assert not cache.compare_and_set(key, v1, "c", 30)
        assert cache.get(key).payload == "b"
        assert cache.touch(key, 30)
    finally:
        cache.delete(key)
        cache.delete(f"{prefix}{RedisCartCache.VERSION_KEY_SUFFIX}")
