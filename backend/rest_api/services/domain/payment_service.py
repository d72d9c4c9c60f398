"""
Payment Domain Service.

Ledger of settlements against an order's total. Payments never change an
order's status; they only gate ``OrderService.complete``.

Cash and card are settled at the table and recorded COMPLETED. Online
payments start PENDING and are confirmed or failed later. Only COMPLETED
payments count toward the total, and the running sum may never exceed it.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import OrderStatus, PaymentMethod, PaymentStatus
from shared.config.logging import payment_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    InvalidStateError,
    NotFoundError,
    OrderNotFoundError,
    OverpaymentRejectedError,
    PaymentAmountError,
    ValidationError,
)
from rest_api.models import Order, Payment
from rest_api.services.domain.order_service import completed_payments_total


class PaymentService:
    """
    Domain service for the payment ledger.
    """

    def __init__(self, db: Session):
        self._db = db

    def _lock_order(self, order_id: int) -> Order:
        order = self._db.scalar(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def _check_overpayment(self, order: Order, amount_cents: int) -> None:
        paid = completed_payments_total(self._db, order.id)
        if paid + amount_cents > order.total_amount_cents:
            raise OverpaymentRejectedError(order.id, paid, amount_cents, order.total_amount_cents)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self._db.scalar(select(Payment).where(Payment.id == payment_id))
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def list_order_payments(self, order_id: int) -> list[Payment]:
        return list(self._db.scalars(
            select(Payment).where(Payment.order_id == order_id).order_by(Payment.id)
        ).all())

    def record_payment(
        self,
        order_id: int,
        amount_cents: int,
        method: str,
        acting_user_id: int | None = None,
        external_reference: str | None = None,
    ) -> Payment:
        """
        Record a payment against an order.

        Raises:
            PaymentAmountError: ``amount_cents`` is not positive.
            ValidationError: Unknown payment method.
            OrderNotFoundError: Unknown order.
            InvalidStateError: The order was cancelled.
            OverpaymentRejectedError: Completed payments plus this one exceed the total.
        """
        if amount_cents <= 0:
            raise PaymentAmountError(amount_cents, "must be greater than zero", order_id=order_id)
        if method not in PaymentMethod.ALL:
            raise ValidationError(f"Unknown payment method {method}", allowed=PaymentMethod.ALL)

        order = self._lock_order(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Order", order.status, order_id=order_id)
        self._check_overpayment(order, amount_cents)

        settled = method in PaymentMethod.IN_PERSON
        payment = Payment(
            order_id=order_id,
            amount_cents=amount_cents,
            method=method,
            status=PaymentStatus.COMPLETED if settled else PaymentStatus.PENDING,
            external_reference=external_reference,
            settled_at=datetime.now(timezone.utc) if settled else None,
        )
        payment.set_created_by(acting_user_id, None)
        self._db.add(payment)

        safe_commit(self._db)
        self._db.refresh(payment)

        logger.info(
            "Payment recorded",
            payment_id=payment.id,
            order_id=order_id,
            amount_cents=amount_cents,
            method=method,
            status=payment.status,
            user_id=acting_user_id,
        )
        return payment

    def _require_pending(self, payment_id: int) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.status != PaymentStatus.PENDING:
            raise InvalidStateError(
                "Payment",
                payment.status,
                expected_states=[PaymentStatus.PENDING],
                payment_id=payment_id,
            )
        return payment

    def confirm_payment(self, payment_id: int, external_reference: str | None = None) -> Payment:
        """
        Settle a PENDING payment. The overpayment rule is re-checked since
        other payments may have completed in the meantime.
        """
        payment = self._require_pending(payment_id)
        order = self._lock_order(payment.order_id)
        self._check_overpayment(order, payment.amount_cents)

        payment.status = PaymentStatus.COMPLETED
        payment.settled_at = datetime.now(timezone.utc)
        if external_reference:
            payment.external_reference = external_reference
        safe_commit(self._db)
        self._db.refresh(payment)

        logger.info("Payment confirmed", payment_id=payment_id, order_id=payment.order_id)
        return payment

    def fail_payment(self, payment_id: int, external_reference: str | None = None) -> Payment:
        payment = self._require_pending(payment_id)

        payment.status = PaymentStatus.FAILED
        if external_reference:
            payment.external_reference = external_reference
        safe_commit(self._db)
        self._db.refresh(payment)

        logger.warning("Payment failed", payment_id=payment_id, order_id=payment.order_id)
        return payment
