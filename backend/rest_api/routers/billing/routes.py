"""
Payment ledger router.

Payments are opaque settlement records against an order. They never move the
order; completing it is a separate transition gated on the completed sum.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    ErrorResponse,
    PaymentOutput,
    RecordPaymentRequest,
    SettlePaymentRequest,
)
from rest_api.models import Order
from rest_api.routers._common import permission_context
from rest_api.services.domain import OrderService, PaymentService
from rest_api.services.permissions import Action, PermissionContext, Resource, Verb


router = APIRouter(prefix="/api/payments", tags=["payments"])


def _payment_action(order: Order, verb: Verb) -> Action:
    return Action(
        Resource.PAYMENT,
        verb,
        restaurant_id=order.restaurant_id,
        branch_id=order.branch_id,
        session_id=order.session_id,
    )


@router.post(
    "",
    response_model=PaymentOutput,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def record_payment(
    body: RecordPaymentRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> PaymentOutput:
    """
    Record a payment. CASH and CARD are settled immediately, ONLINE stays
    PENDING until confirmed. 409 OverpaymentRejected when completed payments
    plus this amount would exceed the order total.
    """
    order = OrderService(db).get_order(body.order_id)
    ctx.require(_payment_action(order, Verb.CREATE))

    payment = PaymentService(db).record_payment(
        order.id,
        body.amount_cents,
        body.method,
        acting_user_id=ctx.principal.user_id,
        external_reference=body.external_reference,
    )
    return PaymentOutput.model_validate(payment)


@router.get("/order/{order_id}", response_model=list[PaymentOutput])
def list_order_payments(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[PaymentOutput]:
    order = OrderService(db).get_order(order_id)
    ctx.require(_payment_action(order, Verb.READ))
    payments = PaymentService(db).list_order_payments(order_id)
    return [PaymentOutput.model_validate(p) for p in payments]


def _settle(
    payment_id: int,
    db: Session,
    ctx: PermissionContext,
) -> tuple[PaymentService, int]:
    service = PaymentService(db)
    payment = service.get_payment(payment_id)
    order = OrderService(db).get_order(payment.order_id)
    ctx.require(_payment_action(order, Verb.UPDATE))
    return service, payment.id


@router.post("/{payment_id}/confirm", response_model=PaymentOutput)
def confirm_payment(
    payment_id: int,
    body: SettlePaymentRequest | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> PaymentOutput:
    """Mark a PENDING payment COMPLETED."""
    service, payment_id = _settle(payment_id, db, ctx)
    reference = body.external_reference if body else None
    return PaymentOutput.model_validate(service.confirm_payment(payment_id, reference))


@router.post("/{payment_id}/fail", response_model=PaymentOutput)
def fail_payment(
    payment_id: int,
    body: SettlePaymentRequest | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> PaymentOutput:
    """Mark a PENDING payment FAILED. Failed payments never count toward the total."""
    service, payment_id = _settle(payment_id, db, ctx)
    reference = body.external_reference if body else None
    return PaymentOutput.model_validate(service.fail_payment(payment_id, reference))
