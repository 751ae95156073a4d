import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String

from orderflow.db import Base
from orderflow.utils.state_machine import TransitionTable


class DeliveryStatus(str, enum.Enum):
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DeliveryAction:
    PICK_UP = "pick_up"
    COMPLETE = "complete"
    CANCEL = "cancel"


DELIVERY_TRANSITIONS = TransitionTable(
    "delivery",
    {
        (DeliveryStatus.ASSIGNED, DeliveryAction.PICK_UP): DeliveryStatus.PICKED_UP,
        (DeliveryStatus.ASSIGNED, DeliveryAction.CANCEL): DeliveryStatus.CANCELLED,
        (DeliveryStatus.PICKED_UP, DeliveryAction.COMPLETE): DeliveryStatus.COMPLETED,
        (DeliveryStatus.PICKED_UP, DeliveryAction.CANCEL): DeliveryStatus.CANCELLED,
    },
)

# action -> timestamp column it stamps (once)
_STAMPS = {
    DeliveryAction.PICK_UP: "picked_up_at",
    DeliveryAction.COMPLETE: "completed_at",
    DeliveryAction.CANCEL: "cancelled_at",
}


class Delivery(Base):
    __tablename__ = "deliveries"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    rider_name = Column(String(64), nullable=False)
    destination_address_id = Column(String(64), nullable=False)
    status = Column(
        Enum(DeliveryStatus, native_enum=False, length=16),
        nullable=False,
        default=DeliveryStatus.ASSIGNED,
    )
    assigned_at = Column(DateTime(timezone=True), nullable=False)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    def apply(self, action: str, now: datetime) -> DeliveryStatus:
        self.status = DELIVERY_TRANSITIONS.next_state(self.status, action)
        column = _STAMPS[action]
        if getattr(self, column) is None:
            setattr(self, column, now)
        return self.status
