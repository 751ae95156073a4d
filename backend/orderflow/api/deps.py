import threading

from fastapi import Header

from orderflow.adapters.cart_cache import build_cart_cache
from orderflow.config import settings
from orderflow.services.cart_service import CartStore

_cart_cache = None
_cart_cache_lock = threading.Lock()


def get_cart_cache():
    # sync dependencies run on the threadpool; all requests must share one cache
    global _cart_cache
    if _cart_cache is None:
        with _cart_cache_lock:
            if _cart_cache is None:
                _cart_cache = build_cart_cache(settings)
    return _cart_cache


def get_cart_store() -> CartStore:
    return CartStore(get_cart_cache())


def get_customer_id(x_customer_id: str = Header(..., alias="X-Customer-Id")) -> str:
    # authentication happens upstream; the gateway forwards the customer id
    return x_customer_id
