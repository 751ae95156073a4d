from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from orderflow.models.order import Order


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def get(self, order_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .first()
        )

    def get_for_update(self, order_id: str) -> Optional[Order]:
        # row lock where the dialect supports it; SQLite ignores FOR UPDATE
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .with_for_update()
            .first()
        )

    def list_for_customer(self, customer_id: str, limit: int = 50) -> List[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
            .all()
        )
