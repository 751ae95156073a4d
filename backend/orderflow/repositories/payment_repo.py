from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from orderflow.models.payment import Payment


class PaymentRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get(self, payment_id: str) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_for_update(self, payment_id: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.id == payment_id)
            .with_for_update()
            .first()
        )

    def next_attempt(self, order_id: str) -> int:
        current = (
            self.db.query(func.coalesce(func.max(Payment.attempt), 0))
            .filter(Payment.order_id == order_id)
            .scalar()
            or 0
        )
        return int(current) + 1

    def latest_for_order(self, order_id: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.order_id == order_id)
            .order_by(Payment.attempt.desc())
            .first()
        )
