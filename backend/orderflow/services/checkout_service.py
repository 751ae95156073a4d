from typing import Optional

from sqlalchemy.orm import Session

from orderflow.errors import EmptyCartError
from orderflow.schemas.order_schema import RequestedLine
from orderflow.services.cart_service import CartStore
from orderflow.services.order_service import OrderWorkflow


class CheckoutService:
    def __init__(self, db: Session, cart_store: CartStore, orders: Optional[OrderWorkflow] = None):
        self.cart_store = cart_store
        self.orders = orders or OrderWorkflow(db)

    def checkout(self, customer_id: str) -> str:
        """
        Turn the customer's cart into an order. Only quantities are taken from
        the cart; prices are resolved again when the order is created. The cart
        is cleared once the order is persisted and left untouched on failure.
        """
        cart = self.cart_store.get_cart(customer_id)
        if cart.is_empty:
            raise EmptyCartError()
        order_id = self.orders.create(
            customer_id,
            cart.store_id,
            [RequestedLine(menu_item_id=ln.menu_item_id, quantity=ln.quantity) for ln in cart.lines],
        )
        self.cart_store.clear(customer_id)
        return order_id
