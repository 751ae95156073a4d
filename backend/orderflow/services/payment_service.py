from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderflow.config import settings
from orderflow.errors import (
    OrderNotFoundError,
    PaymentAmountMismatchError,
    PaymentAttemptConflictError,
    PaymentNotFoundError,
    ValidationError,
)
from orderflow.models.payment import Payment, PaymentStatus
from orderflow.repositories.order_repo import OrderRepository
from orderflow.repositories.payment_repo import PaymentRepository
from orderflow.schemas.payment_schema import PaymentOut
from orderflow.utils.log import get_logger
from orderflow.utils.transactions import smart_transaction

log = get_logger("payments")

MAX_ATTEMPT_ALLOCATIONS = 3


class PaymentWorkflow:
    """
    Payment attempts against an order. Each attempt is its own row; SUCCESS and
    FAILED are final for that row, a retry is a new request().
    """

    def __init__(self, db: Session, enforce_order_total: Optional[bool] = None):
        self.db = db
        self.orders = OrderRepository(db)
        self.payments = PaymentRepository(db)
        self.enforce_order_total = (
            settings.PAYMENT_ENFORCE_ORDER_TOTAL
            if enforce_order_total is None
            else enforce_order_total
        )

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def request(self, order_id: str, amount: int, provider: str) -> str:
        if amount is None or amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")
        if not provider or not provider.strip():
            raise ValidationError("Payment provider is required")

        for tries in range(1, MAX_ATTEMPT_ALLOCATIONS + 1):
            try:
                with smart_transaction(self.db):
                    # order row lock serialises attempt numbering where the dialect supports it
                    order = self.orders.get_for_update(order_id)
                    if order is None:
                        raise OrderNotFoundError()
                    if self.enforce_order_total and amount != order.total_amount:
                        raise PaymentAmountMismatchError(
                            f"Payment amount {amount} does not match order total {order.total_amount}"
                        )
                    payment = Payment(
                        order_id=order_id,
                        attempt=self.payments.next_attempt(order_id),
                        amount=amount,
                        status=PaymentStatus.PENDING,
                        provider=provider.strip(),
                        requested_at=self._now(),
                    )
                    self.payments.add(payment)
                    payment_id = payment.id
                    attempt = payment.attempt
                break
            except IntegrityError as e:
                # uq_payment_order_attempt: a concurrent request took this attempt number
                log.warning(f"attempt number taken order={order_id} try={tries}")
                if tries == MAX_ATTEMPT_ALLOCATIONS:
                    raise PaymentAttemptConflictError() from e

        log.info(f"requested payment={payment_id} order={order_id} attempt={attempt} amount={amount}")
        return payment_id

    def mark_success(self, payment_id: str, transaction_id: str) -> PaymentOut:
        if not transaction_id or not transaction_id.strip():
            raise ValidationError("Transaction id is required")
        with smart_transaction(self.db):
            payment = self._get_for_update(payment_id)
            payment.mark_success(transaction_id.strip(), now=self._now())
            self.db.flush()
            out = PaymentOut.model_validate(payment)
        log.info(f"payment={payment_id} SUCCESS txn={out.transaction_id}")
        return out

    def mark_failed(self, payment_id: str) -> PaymentOut:
        with smart_transaction(self.db):
            payment = self._get_for_update(payment_id)
            payment.mark_failed(now=self._now())
            self.db.flush()
            out = PaymentOut.model_validate(payment)
        log.info(f"payment={payment_id} FAILED")
        return out

    def get_by_id(self, payment_id: str) -> PaymentOut:
        payment = self.payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError()
        return PaymentOut.model_validate(payment)

    def latest_for_order(self, order_id: str) -> Optional[PaymentOut]:
        """The most recently requested attempt, which decides the order's payment status."""
        payment = self.payments.latest_for_order(order_id)
        return PaymentOut.model_validate(payment) if payment else None

    def _get_for_update(self, payment_id: str) -> Payment:
        payment = self.payments.get_for_update(payment_id)
        if payment is None:
            raise PaymentNotFoundError()
        return payment
