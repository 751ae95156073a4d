import os
import tempfile

# must be set before orderflow.config is imported
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "orderflow_test.db")
os.environ["CART_CACHE_URL"] = ""

import pytest

from orderflow.adapters.cart_cache import InMemoryCartCache
from orderflow.db import SessionLocal, init_db
from orderflow.models.menu_item import MenuItem
from orderflow.schemas.order_schema import RequestedLine
from orderflow.services.cart_service import CartStore
from orderflow.services.order_service import OrderWorkflow


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def db():
    # fresh schema per test
    init_db(reset=True)
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def menu(db):
    db.add_all(
        [
            MenuItem(id="M1", store_id="S1", name="Bibimbap", price=1500, available=True),
            MenuItem(id="M2", store_id="S2", name="Tteokbokki", price=1000, available=True),
            MenuItem(id="M3", store_id="S1", name="Kimchi Jjigae", price=1000, available=False),
            MenuItem(id="M4", store_id="S1", name="Mandu", price=700, available=True),
        ]
    )
    db.commit()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cart_cache(clock):
    return InMemoryCartCache(clock=clock)


@pytest.fixture
def cart_store(cart_cache, tmp_path):
    return CartStore(cart_cache, ttl_seconds=3600, lock_dir=str(tmp_path / "locks"))


@pytest.fixture
def order_id(db, menu):
    """A PENDING_PAYMENT order at S1: 2 x M1 (1500) + 1 x M4 (700) = 3700."""
    return OrderWorkflow(db).create(
        "cust-1",
        "S1",
        [
            RequestedLine(menu_item_id="M1", quantity=2),
            RequestedLine(menu_item_id="M4", quantity=1),
        ],
    )
