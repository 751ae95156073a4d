import hashlib
import os
import tempfile
from typing import Callable, Optional

from filelock import FileLock, Timeout

from orderflow.config import settings
from orderflow.errors import CartConflictError, ValidationError
from orderflow.schemas.cart_schema import Cart, CartLine
from orderflow.utils.log import get_logger

log = get_logger("cart")


class CartStore:
    """
    One cart per customer in an expiring cache.

    Mutations run inside a per-customer file lock and are written with the
    cache's compare_and_set, so two writers for the same customer never lose an
    update: on a lost CAS the cart is re-read and the change re-applied. Every
    successful write resets the idle TTL.
    """

    def __init__(
        self,
        cache,
        ttl_seconds: Optional[int] = None,
        key_prefix: Optional[str] = None,
        lock_dir: Optional[str] = None,
        lock_timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds or settings.CART_TTL_SECONDS
        self.key_prefix = key_prefix if key_prefix is not None else settings.CART_KEY_PREFIX
        self.lock_timeout = lock_timeout or settings.CART_LOCK_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.CART_CAS_MAX_ATTEMPTS
        self.lock_dir = (
            lock_dir
            or settings.CART_LOCK_DIR
            or os.path.join(tempfile.gettempdir(), "orderflow_cart_locks")
        )
        os.makedirs(self.lock_dir, exist_ok=True)

    def _key(self, customer_id: str) -> str:
        return f"{self.key_prefix}{customer_id}"

    def _lock(self, customer_id: str) -> FileLock:
        digest = hashlib.sha1(customer_id.encode("utf-8")).hexdigest()
        return FileLock(os.path.join(self.lock_dir, f"cart_{digest}.lock"))

    @staticmethod
    def _require_customer(customer_id: str):
        if not customer_id or not str(customer_id).strip():
            raise ValidationError("Customer id is required")

    def _load(self, customer_id: str, entry) -> Cart:
        if entry is None:
            return Cart(customer_id=customer_id)
        return Cart.model_validate_json(entry.payload)

    def get_cart(self, customer_id: str) -> Cart:
        self._require_customer(customer_id)
        key = self._key(customer_id)
        entry = self.cache.get(key)
        if entry is None:
            return Cart(customer_id=customer_id)
        self.cache.touch(key, self.ttl_seconds)
        return self._load(customer_id, entry)

    def add_item(self, customer_id: str, line: CartLine) -> Cart:
        self._require_customer(customer_id)
        cart = self._mutate(customer_id, lambda current: current.with_line(line))
        log.info(
            f"add customer={customer_id!r} item={line.menu_item_id!r} qty={line.quantity} "
            f"lines={len(cart.lines)}"
        )
        return cart

    def remove_item(self, customer_id: str, menu_item_id: str) -> Cart:
        self._require_customer(customer_id)
        if not menu_item_id:
            raise ValidationError("Menu item id is required")
        return self._mutate(
            customer_id, lambda current: current.without_item(menu_item_id), create=False
        )

    def clear(self, customer_id: str) -> None:
        self._require_customer(customer_id)
        try:
            with self._lock(customer_id).acquire(timeout=self.lock_timeout):
                self.cache.delete(self._key(customer_id))
        except Timeout:
            raise CartConflictError("Could not acquire cart lock; try again")
        log.info(f"cleared customer={customer_id!r}")

    def _mutate(
        self, customer_id: str, change: Callable[[Cart], Cart], create: bool = True
    ) -> Cart:
        key = self._key(customer_id)
        try:
            with self._lock(customer_id).acquire(timeout=self.lock_timeout):
                for attempt in range(1, self.max_attempts + 1):
                    entry = self.cache.get(key)
                    if entry is None and not create:
                        return Cart(customer_id=customer_id)
                    updated = change(self._load(customer_id, entry))
                    version = entry.version if entry else 0
                    if self.cache.compare_and_set(
                        key, version, updated.model_dump_json(), self.ttl_seconds
                    ):
                        return updated
                    log.warning(
                        f"write conflict customer={customer_id!r} attempt={attempt}"
                    )
                raise CartConflictError()
        except Timeout:
            raise CartConflictError("Could not acquire cart lock; try again")
