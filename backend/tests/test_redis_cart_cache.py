import concurrent.futures
import json

import fakeredis
import pytest

from orderflow.adapters.cart_cache import RedisCartCache
from orderflow.errors import DifferentStoreError
from orderflow.schemas.cart_schema import CartLine
from orderflow.services.cart_service import CartStore

KEY = "cart:c1"


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def client(server):
    return fakeredis.FakeRedis(server=server, decode_responses=True)


@pytest.fixture
def cache(client):
    return RedisCartCache(client, key_prefix="cart:")


def test_absent_key_matches_version_zero_only(cache):
    assert cache.get(KEY) is None
    assert not cache.compare_and_set(KEY, 5, "a", 30)
    assert cache.compare_and_set(KEY, 0, "a", 30)
    assert cache.get(KEY).payload == "a"
    assert not cache.compare_and_set(KEY, 0, "b", 30)
    assert cache.get(KEY).payload == "a"


def test_stale_version_is_rejected(cache):
    cache.compare_and_set(KEY, 0, "a", 30)
    v1 = cache.get(KEY).version
    assert cache.compare_and_set(KEY, v1, "b", 30)
    v2 = cache.get(KEY).version
    assert v2 > v1
    assert not cache.compare_and_set(KEY, v1, "c", 30)
    assert cache.get(KEY).payload == "b"


def test_versions_survive_delete(cache):
    cache.compare_and_set(KEY, 0, "a", 30)
    old = cache.get(KEY).version
    cache.delete(KEY)
    assert cache.get(KEY) is None
    cache.compare_and_set(KEY, 0, "b", 30)
    assert cache.get(KEY).version > old


def test_write_sets_and_touch_refreshes_ttl(cache, client):
    cache.compare_and_set(KEY, 0, "a", 30)
    assert 0 < client.ttl(KEY) <= 30
    assert cache.touch(KEY, 600)
    assert client.ttl(KEY) > 30
    assert not cache.touch("cart:missing", 600)


class InterruptedRedisCartCache(RedisCartCache):
    """Another client writes the key after the watched read, before EXEC."""

    def __init__(self, client, other):
        super().__init__(client, key_prefix="cart:")
        self.other = other
        self.armed = False

    def _decode(self, raw):
        entry = RedisCartCache._decode(raw)
        if self.armed:
            self.armed = False
            self.other.set(KEY, json.dumps({"version": 10_000, "payload": "theirs"}))
        return entry


def test_concurrent_write_aborts_transaction(client, server):
    other = fakeredis.FakeRedis(server=server, decode_responses=True)
    cache = InterruptedRedisCartCache(client, other)
    cache.compare_and_set(KEY, 0, "a", 30)
    v1 = cache.get(KEY).version

    cache.armed = True
    assert not cache.compare_and_set(KEY, v1, "ours", 30)
    assert cache.get(KEY).payload == "theirs"


def test_ping(cache):
    assert cache.ping()


def _line(menu_item_id="M1", store_id="S1", qty=1):
    return CartLine(
        menu_item_id=menu_item_id, store_id=store_id, name="Bibimbap", unit_price=1500, quantity=qty
    )


def test_cart_store_over_redis(cache, client, tmp_path):
    store = CartStore(cache, ttl_seconds=120, lock_dir=str(tmp_path))
    store.add_item("c1", _line(qty=2))
    store.add_item("c1", _line(qty=1))
    with pytest.raises(DifferentStoreError):
        store.add_item("c1", _line("M2", "S2"))

    cart = store.get_cart("c1")
    assert cart.store_id == "S1"
    assert [(ln.menu_item_id, ln.quantity) for ln in cart.lines] == [("M1", 3)]
    assert 0 < client.ttl(KEY) <= 120

    assert store.remove_item("c1", "M1").store_id is None
    store.clear("c1")
    assert client.get(KEY) is None


def test_cart_store_over_redis_keeps_concurrent_adds(cache, tmp_path):
    store = CartStore(cache, lock_dir=str(tmp_path))
    with concurrent.futures.ThreadPoolExecutor(max_workers=4) as ex:
        list(ex.map(lambda _: store.add_item("c1", _line()), range(20)))
    assert store.get_cart("c1").lines[0].quantity == 20
