"""
Order Domain Service.

The order lifecycle state machine:

    ORDERED -> PREPARING -> PREPARED_WAITING -> SERVED -> COMPLETED

CANCELLED is reachable from ORDERED, PREPARING and PREPARED_WAITING.
COMPLETED and CANCELLED are terminal.

Every accepted transition bumps ``version`` and appends an OrderLog row in
the same transaction; nothing is committed without its log entry.

Concurrency is optimistic. Callers pass the version they last observed and
a mismatch is a VersionConflictError. The ORM's ``version_id_col`` repeats
the comparison in the UPDATE itself, so two writers racing past the
in-memory check still produce exactly one winner.

The engine is policy-agnostic: authorization is the caller's job.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from shared.config.constants import (
    Limits,
    OrderStatus,
    PaymentStatus,
    get_allowed_order_transitions,
    validate_order_transition,
)
from shared.config.logging import order_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    EmptyOrderError,
    IllegalTransitionError,
    ItemUnavailableError,
    OrderNotFoundError,
    PaymentIncompleteError,
    SessionNotActiveError,
    ValidationError,
    VersionConflictError,
)
from rest_api.models import DiningSession, MenuItem, Order, OrderItem, OrderLog, Payment
from rest_api.services.domain.menu_service import MenuService, is_available_in_branch
from rest_api.services.domain.session_service import SessionService


class OrderLine(Protocol):
    menu_item_id: int
    quantity: int
    notes: str | None


def completed_payments_total(db: Session, order_id: int) -> int:
    """Sum of COMPLETED payments for an order, in cents."""
    return db.scalar(
        select(func.coalesce(func.sum(Payment.amount_cents), 0)).where(
            Payment.order_id == order_id,
            Payment.status == PaymentStatus.COMPLETED,
        )
    )


class OrderService:
    """
    Domain service for the order lifecycle.
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        """
        Raises:
            OrderNotFoundError: If no order has this id.
        """
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
        )
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def list_session_orders(self, session_id: int) -> list[Order]:
        return list(self._db.scalars(
            select(Order)
            .where(Order.session_id == session_id)
            .options(selectinload(Order.items))
            .order_by(Order.id)
        ).all())

    def list_branch_orders(
        self,
        branch_id: int,
        statuses: Iterable[str] | None = None,
    ) -> list[Order]:
        """Branch queue, oldest first (kitchen and waiter views)."""
        query = (
            select(Order)
            .where(Order.branch_id == branch_id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at, Order.id)
        )
        if statuses is not None:
            query = query.where(Order.status.in_(list(statuses)))
        return list(self._db.scalars(query).all())

    def get_logs(self, order_id: int) -> list[OrderLog]:
        self.get_order(order_id)
        return list(self._db.scalars(
            select(OrderLog).where(OrderLog.order_id == order_id).order_by(OrderLog.id)
        ).all())

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(
        self,
        session_id: int,
        items: list[OrderLine],
        notes: str | None = None,
        acting_user_id: int | None = None,
    ) -> Order:
        """
        Place an order in an active session.

        Unit prices and names are snapshotted from the menu.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionNotActiveError: The session has ended.
            EmptyOrderError: No items.
            ItemUnavailableError: Some item is unknown or unavailable in the branch.
        """
        session: DiningSession = SessionService(self._db).get_session(session_id, for_update=True)
        if not session.is_active:
            raise SessionNotActiveError(session_id)
        if not items:
            raise EmptyOrderError(session_id=session_id)
        for line in items:
            if not Limits.MIN_QUANTITY <= line.quantity <= Limits.MAX_QUANTITY:
                raise ValidationError(
                    f"Quantity must be between {Limits.MIN_QUANTITY} and {Limits.MAX_QUANTITY}",
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                )

        menu_item_ids = sorted({line.menu_item_id for line in items})
        menu = {
            item.id: item
            for item in self._db.scalars(
                select(MenuItem).where(
                    MenuItem.id.in_(menu_item_ids),
                    MenuItem.restaurant_id == session.restaurant_id,
                )
            ).all()
        }
        overrides = MenuService(self._db).branch_overrides(session.branch_id, menu_item_ids)

        unavailable = [
            item_id
            for item_id in menu_item_ids
            if item_id not in menu
            or not is_available_in_branch(menu[item_id], session.branch_id, overrides.get(item_id))
        ]
        if unavailable:
            raise ItemUnavailableError(unavailable, session_id=session_id)

        order = Order(
            restaurant_id=session.restaurant_id,
            branch_id=session.branch_id,
            session_id=session.id,
            status=OrderStatus.ORDERED,
            notes=notes,
        )
        order.items = [
            OrderItem(
                menu_item_id=line.menu_item_id,
                item_name=menu[line.menu_item_id].name,
                quantity=line.quantity,
                unit_price_cents=menu[line.menu_item_id].price_cents,
                notes=line.notes,
            )
            for line in items
        ]
        order.recompute_total()
        order.logs.append(OrderLog(status=OrderStatus.ORDERED, acting_user_id=acting_user_id))
        self._db.add(order)

        safe_commit(self._db)
        self._db.refresh(order)

        logger.info(
            "Order created",
            order_id=order.id,
            session_id=session_id,
            items_count=len(order.items),
            total_amount_cents=order.total_amount_cents,
        )
        return order

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        order_id: int,
        target_status: str,
        acting_user_id: int | None,
        expected_version: int,
        notes: str | None = None,
    ) -> Order:
        """
        Move an order to ``target_status``.

        The version is compared before legality so that, of two callers
        holding the same version, the loser always sees VersionConflictError.

        Raises:
            OrderNotFoundError: Unknown order.
            VersionConflictError: ``expected_version`` is stale.
            IllegalTransitionError: ``target_status`` is not reachable.
            PaymentIncompleteError: Completing before payments cover the total.
        """
        order = self._db.scalar(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        if not order:
            raise OrderNotFoundError(order_id)

        if order.version != expected_version:
            raise VersionConflictError(
                order_id,
                expected_version=expected_version,
                current_version=order.version,
                current_status=order.status,
            )

        if not validate_order_transition(order.status, target_status):
            raise IllegalTransitionError(
                order_id,
                current_status=order.status,
                target_status=target_status,
                allowed=get_allowed_order_transitions(order.status),
            )

        if target_status == OrderStatus.COMPLETED:
            paid = completed_payments_total(self._db, order_id)
            if paid < order.total_amount_cents:
                raise PaymentIncompleteError(order_id, paid, order.total_amount_cents)

        previous_status = order.status
        order.status = target_status
        order.logs.append(OrderLog(status=target_status, acting_user_id=acting_user_id, notes=notes))

        try:
            self._db.flush()
        except StaleDataError:
            self._db.rollback()
            current = self._db.scalar(select(Order).where(Order.id == order_id))
            raise VersionConflictError(
                order_id,
                expected_version=expected_version,
                current_version=current.version if current else None,
                current_status=current.status if current else None,
            )

        safe_commit(self._db)
        self._db.refresh(order)

        logger.info(
            "Order transitioned",
            order_id=order_id,
            from_status=previous_status,
            to_status=target_status,
            version=order.version,
            user_id=acting_user_id,
        )
        return order

    def cancel(
        self,
        order_id: int,
        acting_user_id: int | None,
        reason: str | None,
        expected_version: int,
    ) -> Order:
        """Cancel an order that has not been served yet. The reason goes to the log."""
        return self.transition(
            order_id,
            OrderStatus.CANCELLED,
            acting_user_id=acting_user_id,
            expected_version=expected_version,
            notes=reason,
        )

    def complete(
        self,
        order_id: int,
        expected_version: int,
        acting_user_id: int | None = None,
    ) -> Order:
        """Complete a served order once completed payments cover its total."""
        return self.transition(
            order_id,
            OrderStatus.COMPLETED,
            acting_user_id=acting_user_id,
            expected_version=expected_version,
        )
