from typing import List, Optional

from sqlalchemy.orm import Session

from orderflow.models.delivery import Delivery


class DeliveryRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, delivery: Delivery) -> Delivery:
        self.db.add(delivery)
        self.db.flush()
        return delivery

    def get(self, delivery_id: str) -> Optional[Delivery]:
        return self.db.query(Delivery).filter(Delivery.id == delivery_id).first()

    def get_for_update(self, delivery_id: str) -> Optional[Delivery]:
        return (
            self.db.query(Delivery)
            .filter(Delivery.id == delivery_id)
            .with_for_update()
            .first()
        )

    def list_for_order(self, order_id: str) -> List[Delivery]:
        return (
            self.db.query(Delivery)
            .filter(Delivery.order_id == order_id)
            .order_by(Delivery.assigned_at)
            .all()
        )
