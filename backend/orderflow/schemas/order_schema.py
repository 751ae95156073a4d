from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from orderflow.models.order import OrderStatus


class RequestedLine(BaseModel):
    """One line of an order request: which item and how many. Never a price."""

    menu_item_id: str
    quantity: int


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    menu_item_id: str
    name: str
    unit_price: int
    quantity: int
    line_amount: int


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    customer_id: str
    store_id: str
    status: OrderStatus
    total_amount: int
    created_at: datetime
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    lines: List[OrderLineOut]
