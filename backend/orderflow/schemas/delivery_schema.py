from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from orderflow.models.delivery import DeliveryStatus


class DeliveryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    order_id: str
    rider_name: str
    destination_address_id: str
    status: DeliveryStatus
    assigned_at: datetime
    picked_up_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
