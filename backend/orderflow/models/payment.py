import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint

from orderflow.db import Base
from orderflow.utils.state_machine import TransitionTable


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentAction:
    SUCCEED = "succeed"
    FAIL = "fail"


# SUCCESS and FAILED have no outgoing edges: a retry is a new Payment row
PAYMENT_TRANSITIONS = TransitionTable(
    "payment",
    {
        (PaymentStatus.PENDING, PaymentAction.SUCCEED): PaymentStatus.SUCCESS,
        (PaymentStatus.PENDING, PaymentAction.FAIL): PaymentStatus.FAILED,
    },
)


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("order_id", "attempt", name="uq_payment_order_attempt"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    attempt = Column(Integer, nullable=False, default=1)
    amount = Column(Integer, nullable=False)
    status = Column(
        Enum(PaymentStatus, native_enum=False, length=16),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    provider = Column(String(64), nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)
    transaction_id = Column(String(128), nullable=True)

    def mark_success(self, transaction_id: str, now: datetime) -> PaymentStatus:
        self.status = PAYMENT_TRANSITIONS.next_state(self.status, PaymentAction.SUCCEED)
        self.transaction_id = transaction_id
        self.paid_at = now
        return self.status

    def mark_failed(self, now: datetime) -> PaymentStatus:
        self.status = PAYMENT_TRANSITIONS.next_state(self.status, PaymentAction.FAIL)
        self.transaction_id = None
        self.failed_at = now
        return self.status
