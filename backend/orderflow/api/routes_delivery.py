from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from orderflow.db import get_db
from orderflow.services.delivery_service import DeliveryWorkflow

router = APIRouter(prefix="/api/deliveries", tags=["deliveries"])


class AssignIn(BaseModel):
    order_id: str
    rider_name: str
    destination_address_id: str


@router.post("", summary="Assign a rider")
def assign(payload: AssignIn, db: Session = Depends(get_db)):
    svc = DeliveryWorkflow(db)
    delivery_id = svc.assign(payload.order_id, payload.rider_name, payload.destination_address_id)
    return svc.get_by_id(delivery_id).model_dump(mode="json")


@router.get("/{delivery_id}", summary="Get delivery")
def get_delivery(delivery_id: str, db: Session = Depends(get_db)):
    return DeliveryWorkflow(db).get_by_id(delivery_id).model_dump(mode="json")


@router.post("/{delivery_id}/pickup", summary="Rider picked up the order")
def pick_up(delivery_id: str, db: Session = Depends(get_db)):
    return DeliveryWorkflow(db).pick_up(delivery_id).model_dump(mode="json")


@router.post("/{delivery_id}/complete", summary="Delivery completed")
def complete(delivery_id: str, db: Session = Depends(get_db)):
    return DeliveryWorkflow(db).complete(delivery_id).model_dump(mode="json")


@router.post("/{delivery_id}/cancel", summary="Cancel delivery")
def cancel(delivery_id: str, db: Session = Depends(get_db)):
    return DeliveryWorkflow(db).cancel(delivery_id).model_dump(mode="json")
