from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from orderflow.errors import DeliveryNotFoundError, OrderNotFoundError, ValidationError
from orderflow.models.delivery import Delivery, DeliveryAction, DeliveryStatus
from orderflow.models.order import Order
from orderflow.repositories.delivery_repo import DeliveryRepository
from orderflow.schemas.delivery_schema import DeliveryOut
from orderflow.utils.log import get_logger
from orderflow.utils.transactions import smart_transaction

log = get_logger("deliveries")


class DeliveryWorkflow:
    def __init__(self, db: Session):
        self.db = db
        self.deliveries = DeliveryRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def assign(self, order_id: str, rider_name: str, destination_address_id: str) -> str:
        if not rider_name or not rider_name.strip():
            raise ValidationError("Rider name is required")
        if destination_address_id is None or not str(destination_address_id).strip():
            raise ValidationError("Destination address is required")

        with smart_transaction(self.db):
            if self.db.get(Order, order_id) is None:
                raise OrderNotFoundError()
            delivery = Delivery(
                order_id=order_id,
                rider_name=rider_name.strip(),
                destination_address_id=str(destination_address_id),
                status=DeliveryStatus.ASSIGNED,
                assigned_at=self._now(),
            )
            self.deliveries.add(delivery)
            delivery_id = delivery.id

        log.info(f"assigned delivery={delivery_id} order={order_id} rider={rider_name!r}")
        return delivery_id

    def pick_up(self, delivery_id: str) -> DeliveryOut:
        return self._transition(delivery_id, DeliveryAction.PICK_UP)

    def complete(self, delivery_id: str) -> DeliveryOut:
        return self._transition(delivery_id, DeliveryAction.COMPLETE)

    def cancel(self, delivery_id: str) -> DeliveryOut:
        return self._transition(delivery_id, DeliveryAction.CANCEL)

    def get_by_id(self, delivery_id: str) -> DeliveryOut:
        delivery = self.deliveries.get(delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError()
        return DeliveryOut.model_validate(delivery)

    def list_for_order(self, order_id: str) -> List[DeliveryOut]:
        return [DeliveryOut.model_validate(d) for d in self.deliveries.list_for_order(order_id)]

    def _transition(self, delivery_id: str, action: str) -> DeliveryOut:
        with smart_transaction(self.db):
            delivery = self.deliveries.get_for_update(delivery_id)
            if delivery is None:
                raise DeliveryNotFoundError()
            previous = delivery.status
            delivery.apply(action, now=self._now())
            self.db.flush()
            out = DeliveryOut.model_validate(delivery)
        log.info(f"delivery={delivery_id} {action}: {previous.value} -> {out.status.value}")
        return out
