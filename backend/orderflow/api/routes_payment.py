from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from orderflow.db import get_db
from orderflow.services.payment_service import PaymentWorkflow

router = APIRouter(prefix="/api/payments", tags=["payments"])


class PaymentRequestIn(BaseModel):
    order_id: str
    amount: int
    provider: str


class PaymentSuccessIn(BaseModel):
    transaction_id: str


@router.post("", summary="Request payment")
def request_payment(payload: PaymentRequestIn, db: Session = Depends(get_db)):
    svc = PaymentWorkflow(db)
    payment_id = svc.request(payload.order_id, payload.amount, payload.provider)
    return svc.get_by_id(payment_id).model_dump(mode="json")


@router.get("/{payment_id}", summary="Get payment")
def get_payment(payment_id: str, db: Session = Depends(get_db)):
    return PaymentWorkflow(db).get_by_id(payment_id).model_dump(mode="json")


@router.post("/{payment_id}/success", summary="Payment succeeded")
def mark_success(payment_id: str, payload: PaymentSuccessIn, db: Session = Depends(get_db)):
    return PaymentWorkflow(db).mark_success(payment_id, payload.transaction_id).model_dump(mode="json")


@router.post("/{payment_id}/failed", summary="Payment failed")
def mark_failed(payment_id: str, db: Session = Depends(get_db)):
    return PaymentWorkflow(db).mark_failed(payment_id).model_dump(mode="json")
