import enum
from datetime import datetime
from typing import Iterable
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from orderflow.db import Base
from orderflow.errors import ValidationError
from orderflow.utils.state_machine import TransitionTable


class OrderStatus(str, enum.Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    PREPARING = "PREPARING"
    DELIVERING = "DELIVERING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderAction:
    PAY = "pay"
    START_PREPARING = "start_preparing"
    START_DELIVERY = "start_delivery"
    DELIVER = "deliver"
    CANCEL = "cancel"


ORDER_TRANSITIONS = TransitionTable(
    "order",
    {
        (OrderStatus.PENDING_PAYMENT, OrderAction.PAY): OrderStatus.PAID,
        (OrderStatus.PENDING_PAYMENT, OrderAction.CANCEL): OrderStatus.CANCELLED,
        (OrderStatus.PAID, OrderAction.START_PREPARING): OrderStatus.PREPARING,
        (OrderStatus.PAID, OrderAction.CANCEL): OrderStatus.CANCELLED,
        (OrderStatus.PREPARING, OrderAction.START_DELIVERY): OrderStatus.DELIVERING,
        (OrderStatus.DELIVERING, OrderAction.DELIVER): OrderStatus.COMPLETED,
    },
)


class Order(Base):
    __tablename__ = "orders"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    customer_id = Column(String(64), nullable=False, index=True)
    store_id = Column(String(64), nullable=False, index=True)
    status = Column(
        Enum(OrderStatus, native_enum=False, length=32),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT,
    )
    total_amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )

    @classmethod
    def place(
        cls, customer_id: str, store_id: str, lines: Iterable["OrderLine"], now: datetime
    ) -> "Order":
        """Build a new PENDING_PAYMENT order whose total is derived from its lines."""
        lines = list(lines)
        if not lines:
            raise ValidationError("An order needs at least one line")
        for position, line in enumerate(lines):
            line.position = position
        return cls(
            id=str(uuid4()),
            customer_id=customer_id,
            store_id=store_id,
            status=OrderStatus.PENDING_PAYMENT,
            total_amount=sum(line.line_amount for line in lines),
            created_at=now,
            lines=lines,
        )

    def apply(self, action: str, now: datetime) -> OrderStatus:
        self.status = ORDER_TRANSITIONS.next_state(self.status, action)
        if action == OrderAction.PAY:
            self.paid_at = now
        elif action == OrderAction.DELIVER:
            self.completed_at = now
        elif action == OrderAction.CANCEL:
            self.cancelled_at = now
        return self.status


class OrderLine(Base):
    __tablename__ = "order_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    menu_item_id = Column(String(64), nullable=False)
    name = Column(String(128), nullable=False)
    unit_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="lines")

    @property
    def line_amount(self) -> int:
        return self.unit_price * self.quantity
