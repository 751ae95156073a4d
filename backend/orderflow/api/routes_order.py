from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from orderflow.api.deps import get_cart_store, get_customer_id
from orderflow.db import get_db
from orderflow.schemas.order_schema import RequestedLine
from orderflow.services.cart_service import CartStore
from orderflow.services.checkout_service import CheckoutService
from orderflow.services.order_service import OrderWorkflow
from orderflow.services.payment_service import PaymentWorkflow

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CreateOrderIn(BaseModel):
    store_id: str
    items: List[RequestedLine]


@router.post("", summary="Create order")
def create_order(
    payload: CreateOrderIn,
    customer_id: str = Depends(get_customer_id),
    db: Session = Depends(get_db),
):
    svc = OrderWorkflow(db)
    order_id = svc.create(customer_id, payload.store_id, payload.items)
    return svc.get_by_id(order_id).model_dump(mode="json")


@router.post("/checkout", summary="Create order from the current cart")
def checkout(
    customer_id: str = Depends(get_customer_id),
    store: CartStore = Depends(get_cart_store),
    db: Session = Depends(get_db),
):
    orders = OrderWorkflow(db)
    order_id = CheckoutService(db, store, orders=orders).checkout(customer_id)
    return orders.get_by_id(order_id).model_dump(mode="json")


@router.get("", summary="List my orders")
def list_orders(
    customer_id: str = Depends(get_customer_id),
    db: Session = Depends(get_db),
):
    return {
        "items": [
            o.model_dump(mode="json") for o in OrderWorkflow(db).list_for_customer(customer_id)
        ]
    }


@router.get("/{order_id}", summary="Get order")
def get_order(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).get_by_id(order_id).model_dump(mode="json")


@router.get("/{order_id}/payments/latest", summary="Authoritative payment attempt")
def latest_payment(order_id: str, db: Session = Depends(get_db)):
    OrderWorkflow(db).get_by_id(order_id)
    payment = PaymentWorkflow(db).latest_for_order(order_id)
    return {"payment": payment.model_dump(mode="json") if payment else None}


@router.post("/{order_id}/paid", summary="Mark order paid")
def mark_paid(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).mark_paid(order_id).model_dump(mode="json")


@router.post("/{order_id}/preparing", summary="Store starts preparing")
def start_preparing(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).start_preparing(order_id).model_dump(mode="json")


@router.post("/{order_id}/delivering", summary="Order handed to the courier")
def start_delivery(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).start_delivery(order_id).model_dump(mode="json")


@router.post("/{order_id}/delivered", summary="Mark order delivered")
def mark_delivered(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).mark_delivered(order_id).model_dump(mode="json")


@router.post("/{order_id}/cancel", summary="Cancel order")
def cancel(order_id: str, db: Session = Depends(get_db)):
    return OrderWorkflow(db).cancel(order_id).model_dump(mode="json")
