from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from orderflow.models.payment import PaymentStatus


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    order_id: str
    attempt: int
    amount: int
    status: PaymentStatus
    provider: str
    requested_at: datetime
    paid_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
