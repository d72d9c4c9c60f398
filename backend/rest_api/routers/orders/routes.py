"""
Order lifecycle router.

Every mutation carries the version the caller last saw; a stale version is
answered with 409 VersionConflict and the current state, never retried.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.config.constants import OrderStatus, Roles
from shared.utils.exceptions import VersionConflictError
from shared.utils.schemas import (
    CreateOrderRequest,
    ErrorResponse,
    OrderLogOutput,
    OrderOutput,
    OrderStatusValue,
    UpdateOrderRequest,
)
from rest_api.models import Order
from rest_api.routers._common import get_branch, permission_context
from rest_api.services.domain import OrderService, SessionService
from rest_api.services.permissions import Action, PermissionContext, Resource, Verb


router = APIRouter(prefix="/api/orders", tags=["orders"])

# Default queue per line role when no status filter is given
ROLE_QUEUES: dict[str, list[str]] = {
    Roles.KITCHEN: OrderStatus.KITCHEN_VISIBLE,
    Roles.WAITER: OrderStatus.WAITER_VISIBLE,
}


def _read_action(order: Order) -> Action:
    return Action(
        Resource.ORDER,
        Verb.READ,
        restaurant_id=order.restaurant_id,
        branch_id=order.branch_id,
        session_id=order.session_id,
    )


@router.post(
    "",
    response_model=OrderOutput,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_order(
    body: CreateOrderRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> OrderOutput:
    """Place an order in an active session. Prices are taken from the menu."""
    session = SessionService(db).get_session(body.session_id)
    ctx.require(Action(
        Resource.ORDER,
        Verb.CREATE,
        restaurant_id=session.restaurant_id,
        branch_id=session.branch_id,
        session_id=session.id,
    ))

    order = OrderService(db).create_order(
        session.id,
        body.items,
        notes=body.notes,
        acting_user_id=ctx.principal.user_id,
    )
    return OrderOutput.model_validate(order)


@router.get("/session/{session_id}", response_model=list[OrderOutput])
def list_session_orders(
    session_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[OrderOutput]:
    session = SessionService(db).get_session(session_id)
    ctx.require(Action(
        Resource.ORDER,
        Verb.READ,
        restaurant_id=session.restaurant_id,
        branch_id=session.branch_id,
        session_id=session.id,
    ))
    orders = OrderService(db).list_session_orders(session_id)
    return [OrderOutput.model_validate(o) for o in orders]


@router.get("/branch/{branch_id}", response_model=list[OrderOutput])
def list_branch_orders(
    branch_id: int,
    status_filter: list[OrderStatusValue] | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[OrderOutput]:
    """
    Branch order queue, oldest first.

    Kitchen sees ORDERED and PREPARING, waiters PREPARED_WAITING and SERVED,
    unless ``status`` is given.
    """
    branch = get_branch(db, branch_id)
    ctx.require(Action(
        Resource.ORDER,
        Verb.READ,
        restaurant_id=branch.restaurant_id,
        branch_id=branch.id,
    ))
    statuses = status_filter or ROLE_QUEUES.get(ctx.principal.role)
    orders = OrderService(db).list_branch_orders(branch.id, statuses)
    return [OrderOutput.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> OrderOutput:
    order = OrderService(db).get_order(order_id)
    ctx.require(_read_action(order))
    return OrderOutput.model_validate(order)


@router.get("/{order_id}/logs", response_model=list[OrderLogOutput])
def get_order_logs(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[OrderLogOutput]:
    """Status history of an order, oldest first."""
    service = OrderService(db)
    ctx.require(_read_action(service.get_order(order_id)))
    return [OrderLogOutput.model_validate(log) for log in service.get_logs(order_id)]


@router.put(
    "/{order_id}",
    response_model=OrderOutput,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_order_status(
    order_id: int,
    body: UpdateOrderRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> OrderOutput:
    """
    Move an order to another status.

    409 VersionConflict when ``expected_version`` is stale, 409
    IllegalTransition when the target is unreachable, 409 PaymentIncomplete
    when completing an order that is not fully paid.
    """
    service = OrderService(db)
    order = service.get_order(order_id)
    if order.version != body.expected_version:
        # Stale callers learn the current state only if they may read it
        ctx.require(_read_action(order))
        raise VersionConflictError(
            order_id,
            expected_version=body.expected_version,
            current_version=order.version,
            current_status=order.status,
        )
    ctx.require_order_transition(order, body.status)

    order = service.transition(
        order_id,
        body.status,
        acting_user_id=ctx.principal.user_id,
        expected_version=body.expected_version,
        notes=body.notes,
    )
    return OrderOutput.model_validate(order)
