from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from orderflow.errors import (
    InvalidQuantityError,
    MenuItemNotFoundError,
    MenuItemStoreMismatchError,
    MenuItemUnavailableError,
    OrderNotFoundError,
    ValidationError,
)
from orderflow.models.order import Order, OrderAction, OrderLine
from orderflow.repositories.menu_repo import MenuRepository, PricingLookup
from orderflow.repositories.order_repo import OrderRepository
from orderflow.schemas.order_schema import OrderOut, RequestedLine
from orderflow.utils.log import get_logger
from orderflow.utils.transactions import smart_transaction

log = get_logger("orders")


class OrderWorkflow:
    def __init__(self, db: Session, pricing: Optional[PricingLookup] = None):
        self.db = db
        self.orders = OrderRepository(db)
        self.pricing = pricing or MenuRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def create(
        self, customer_id: str, store_id: str, requested_lines: Iterable[RequestedLine]
    ) -> str:
        """
        Place an order for `requested_lines` ({menu_item_id, quantity}) at `store_id`.

        Names and unit prices come from the pricing lookup at this moment; the
        request only decides which items and how many. Lines for the same menu
        item are merged. The order and all of its lines are written in one
        transaction. Returns the new order id.
        """
        if not customer_id or not str(customer_id).strip():
            raise ValidationError("Customer id is required")
        if not store_id or not str(store_id).strip():
            raise ValidationError("Store id is required")

        quantities: Dict[str, int] = {}
        for req in requested_lines:
            if req.quantity < 1:
                raise InvalidQuantityError(
                    f"Quantity for {req.menu_item_id} must be at least 1"
                )
            quantities[req.menu_item_id] = quantities.get(req.menu_item_id, 0) + req.quantity
        if not quantities:
            raise ValidationError("An order needs at least one line")

        lines: List[OrderLine] = []
        for menu_item_id, qty in quantities.items():
            quote = self.pricing.find_menu_item(menu_item_id)
            if quote is None:
                raise MenuItemNotFoundError(f"Menu item not found: {menu_item_id}")
            if not quote.available:
                raise MenuItemUnavailableError(f"Menu item unavailable: {menu_item_id}")
            if quote.store_id is not None and quote.store_id != store_id:
                raise MenuItemStoreMismatchError(
                    f"Menu item {menu_item_id} does not belong to store {store_id}"
                )
            lines.append(
                OrderLine(
                    menu_item_id=menu_item_id,
                    name=quote.name,
                    unit_price=quote.unit_price,
                    quantity=qty,
                )
            )

        with smart_transaction(self.db):
            order = Order.place(customer_id, store_id, lines, now=self._now())
            self.orders.add(order)
            order_id = order.id
            total = order.total_amount

        log.info(
            f"created order={order_id} customer={customer_id!r} store={store_id!r} "
            f"lines={len(lines)} total={total}"
        )
        return order_id

    def get_by_id(self, order_id: str) -> OrderOut:
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError()
        return OrderOut.model_validate(order)

    def list_for_customer(self, customer_id: str, limit: int = 50) -> List[OrderOut]:
        return [OrderOut.model_validate(o) for o in self.orders.list_for_customer(customer_id, limit)]

    def mark_paid(self, order_id: str) -> OrderOut:
        return self._transition(order_id, OrderAction.PAY)

    def start_preparing(self, order_id: str) -> OrderOut:
        return self._transition(order_id, OrderAction.START_PREPARING)

    def start_delivery(self, order_id: str) -> OrderOut:
        return self._transition(order_id, OrderAction.START_DELIVERY)

    def mark_delivered(self, order_id: str) -> OrderOut:
        return self._transition(order_id, OrderAction.DELIVER)

    def cancel(self, order_id: str) -> OrderOut:
        # PENDING_PAYMENT and PAID only; see ORDER_TRANSITIONS
        return self._transition(order_id, OrderAction.CANCEL)

    def _transition(self, order_id: str, action: str) -> OrderOut:
        with smart_transaction(self.db):
            order = self.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFoundError()
            previous = order.status
            order.apply(action, now=self._now())
            self.db.flush()
            out = OrderOut.model_validate(order)
        log.info(f"order={order_id} {action}: {previous.value} -> {out.status.value}")
        return out
