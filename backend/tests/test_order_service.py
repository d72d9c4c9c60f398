"""
Tests for the order lifecycle engine.
"""

import pytest
from sqlalchemy import text

from rest_api.models import BranchMenuAvailability, MenuItem, OrderLog
from rest_api.services.domain import OrderService, PaymentService, SessionService
from shared.config.constants import ORDER_TRANSITIONS, OrderStatus, PaymentMethod
from shared.utils.exceptions import (
    EmptyOrderError,
    IllegalTransitionError,
    ItemUnavailableError,
    OrderNotFoundError,
    PaymentIncompleteError,
    SessionNotActiveError,
    VersionConflictError,
)
from shared.utils.schemas import OrderItemInput


def place(db, session, *lines):
    return OrderService(db).create_order(
        session.id,
        [OrderItemInput(menu_item_id=item.id, quantity=qty) for item, qty in lines],
    )


# Statuses walked through, after ORDERED, to reach each status
PATHS_FROM_ORDERED = {
    OrderStatus.ORDERED: [],
    OrderStatus.PREPARING: [OrderStatus.PREPARING],
    OrderStatus.PREPARED_WAITING: [OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING],
    OrderStatus.SERVED: [OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING, OrderStatus.SERVED],
    OrderStatus.COMPLETED: [
        OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING, OrderStatus.SERVED, OrderStatus.COMPLETED,
    ],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
}


class TestCreateOrder:
    """Tests for placing orders."""

    def test_create_order_snapshots_prices(self, db_session, active_session, seed_menu):
        """Should snapshot names and prices and compute the total."""
        soup, lemonade = seed_menu
        order = place(db_session, active_session, (soup, 2), (lemonade, 1))

        assert order.status == OrderStatus.ORDERED
        assert order.version == 1
        assert order.total_amount_cents == 1300
        assert order.branch_id == active_session.branch_id
        assert [(i.item_name, i.unit_price_cents, i.quantity) for i in order.items] == [
            ("Soup", 500, 2),
            ("Lemonade", 300, 1),
        ]

    def test_menu_price_change_keeps_snapshot(self, db_session, active_session, seed_menu):
        """Should not alter a placed order when the menu price changes."""
        soup, _ = seed_menu
        order = place(db_session, active_session, (soup, 2))

        soup.price_cents = 900
        db_session.commit()

        reloaded = OrderService(db_session).get_order(order.id)
        assert reloaded.items[0].unit_price_cents == 500
        assert reloaded.total_amount_cents == 1000

    def test_initial_log_entry(self, db_session, active_session, seed_menu):
        """Should log the ORDERED status on creation."""
        soup, _ = seed_menu
        order = place(db_session, active_session, (soup, 1))

        logs = OrderService(db_session).get_logs(order.id)
        assert [log.status for log in logs] == [OrderStatus.ORDERED]

    def test_empty_order(self, db_session, active_session):
        """Should reject an order without items."""
        with pytest.raises(EmptyOrderError):
            OrderService(db_session).create_order(active_session.id, [])

    def test_unknown_item(self, db_session, active_session, seed_menu):
        """Should reject items that do not exist."""
        with pytest.raises(ItemUnavailableError) as exc_info:
            OrderService(db_session).create_order(
                active_session.id, [OrderItemInput(menu_item_id=999, quantity=1)]
            )
        assert exc_info.value.context["menu_item_ids"] == [999]

    def test_unavailable_item(self, db_session, active_session, seed_menu):
        """Should reject items marked unavailable."""
        soup, _ = seed_menu
        soup.is_available = False
        db_session.commit()

        with pytest.raises(ItemUnavailableError):
            place(db_session, active_session, (soup, 1))

    def test_branch_override_disables_item(self, db_session, active_session, seed_menu):
        """Should honor a branch availability override."""
        _, lemonade = seed_menu
        db_session.add(BranchMenuAvailability(
            branch_id=active_session.branch_id, menu_item_id=lemonade.id, is_available=False,
        ))
        db_session.commit()

        with pytest.raises(ItemUnavailableError):
            place(db_session, active_session, (lemonade, 1))

    def test_item_from_other_restaurant(self, db_session, active_session, seed_other_restaurant):
        """Should reject menu items of another restaurant."""
        restaurant, _ = seed_other_restaurant
        foreign = MenuItem(restaurant_id=restaurant.id, name="Foreign", price_cents=100, is_available=True)
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(ItemUnavailableError):
            place(db_session, active_session, (foreign, 1))

    def test_ended_session(self, db_session, active_session, seed_menu):
        """Should reject orders in an ended session."""
        soup, _ = seed_menu
        SessionService(db_session).end_session(active_session.id)

        with pytest.raises(SessionNotActiveError):
            place(db_session, active_session, (soup, 1))

    def test_session_reread_under_lock(self, db_session, active_session, seed_menu):
        """Should lock and re-read the session row instead of trusting a loaded copy."""
        soup, _ = seed_menu
        # Another transaction ends the session behind the loaded object's back
        db_session.execute(
            text("UPDATE dining_session SET is_active = 0 WHERE id = :id"),
            {"id": active_session.id},
        )

        with pytest.raises(SessionNotActiveError):
            place(db_session, active_session, (soup, 1))

    def test_create_order_locks_session(self, db_session, active_session, seed_menu, monkeypatch):
        """Should request a row lock on the session before checking it."""
        soup, _ = seed_menu
        calls = []
        get_session = SessionService.get_session

        def recording_get_session(self, session_id, for_update=False):
            calls.append(for_update)
            return get_session(self, session_id, for_update=for_update)

        monkeypatch.setattr(SessionService, "get_session", recording_get_session)
        place(db_session, active_session, (soup, 1))

        assert calls == [True]


class TestTransitions:
    """Tests for the status state machine."""

    def test_full_workflow(self, db_session, active_session, seed_menu, seed_kitchen, seed_waiter):
        """Should walk the happy path, bumping the version on every step."""
        soup, lemonade = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 2), (lemonade, 1))

        order = service.transition(order.id, OrderStatus.PREPARING, seed_kitchen.id, expected_version=1)
        assert order.version == 2
        order = service.transition(order.id, OrderStatus.PREPARED_WAITING, seed_kitchen.id, expected_version=2)
        assert order.version == 3
        order = service.transition(order.id, OrderStatus.SERVED, seed_waiter.id, expected_version=3)
        assert order.version == 4

        PaymentService(db_session).record_payment(order.id, 1300, PaymentMethod.CARD, seed_waiter.id)
        order = service.complete(order.id, expected_version=4, acting_user_id=seed_waiter.id)

        assert order.status == OrderStatus.COMPLETED
        assert order.version == 5
        logs = service.get_logs(order.id)
        assert [log.status for log in logs] == [
            OrderStatus.ORDERED,
            OrderStatus.PREPARING,
            OrderStatus.PREPARED_WAITING,
            OrderStatus.SERVED,
            OrderStatus.COMPLETED,
        ]
        assert logs[1].acting_user_id == seed_kitchen.id

    def test_stale_version(self, db_session, active_session, seed_menu):
        """Should reject a caller holding an old version."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        service.transition(order.id, OrderStatus.PREPARING, None, expected_version=1)

        with pytest.raises(VersionConflictError) as exc_info:
            service.transition(order.id, OrderStatus.CANCELLED, None, expected_version=1)

        assert exc_info.value.status_code == 409
        assert exc_info.value.context["current_version"] == 2
        assert exc_info.value.context["current_status"] == OrderStatus.PREPARING

    def test_version_checked_before_legality(self, db_session, active_session, seed_menu):
        """Should report the stale version even when the target is also illegal."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        service.transition(order.id, OrderStatus.PREPARING, None, expected_version=1)

        with pytest.raises(VersionConflictError):
            service.transition(order.id, OrderStatus.SERVED, None, expected_version=1)

    def test_concurrent_writer_loses(self, db_session, active_session, seed_menu):
        """Should turn a lost race at flush time into a version conflict."""
        soup, _ = seed_menu
        order = place(db_session, active_session, (soup, 1))

        # Another writer bumps the row behind the loaded object's back
        db_session.execute(
            text("UPDATE customer_order SET version = version + 1 WHERE id = :id"),
            {"id": order.id},
        )

        with pytest.raises(VersionConflictError):
            OrderService(db_session).transition(order.id, OrderStatus.PREPARING, None, expected_version=1)

        assert db_session.query(OrderLog).filter(OrderLog.order_id == order.id).count() == 1

    @pytest.mark.parametrize("target", OrderStatus.ALL)
    @pytest.mark.parametrize("source", OrderStatus.ALL)
    def test_transition_table_is_total(self, db_session, active_session, seed_menu, source, target):
        """Should allow exactly the listed transitions and leave the order untouched otherwise."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        # Paid in full up front so completing never stops at the payment check
        PaymentService(db_session).record_payment(order.id, order.total_amount_cents, PaymentMethod.CASH)
        for version, status in enumerate(PATHS_FROM_ORDERED[source], start=1):
            service.transition(order.id, status, None, expected_version=version)
        version = len(PATHS_FROM_ORDERED[source]) + 1

        if target in ORDER_TRANSITIONS[source]:
            moved = service.transition(order.id, target, None, expected_version=version)
            assert moved.status == target
            assert moved.version == version + 1
        else:
            with pytest.raises(IllegalTransitionError) as exc_info:
                service.transition(order.id, target, None, expected_version=version)
            assert exc_info.value.context["allowed"] == ORDER_TRANSITIONS[source]
            db_session.expire_all()
            unchanged = service.get_order(order.id)
            assert unchanged.status == source
            assert unchanged.version == version

    @pytest.mark.parametrize("target", [OrderStatus.SERVED, OrderStatus.COMPLETED, OrderStatus.ORDERED])
    def test_illegal_from_ordered(self, db_session, active_session, seed_menu, target):
        """Should reject skipping ahead or staying put."""
        soup, _ = seed_menu
        order = place(db_session, active_session, (soup, 1))

        with pytest.raises(IllegalTransitionError) as exc_info:
            OrderService(db_session).transition(order.id, target, None, expected_version=1)

        assert exc_info.value.context["allowed"] == [OrderStatus.PREPARING, OrderStatus.CANCELLED]
        assert order.version == 1

    def test_terminal_state(self, db_session, active_session, seed_menu):
        """Should reject any transition out of CANCELLED."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        service.cancel(order.id, None, "kitchen closed", expected_version=1)

        with pytest.raises(IllegalTransitionError):
            service.transition(order.id, OrderStatus.PREPARING, None, expected_version=2)

    def test_served_cannot_cancel(self, db_session, active_session, seed_menu):
        """Should not allow cancelling a served order."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        for version, status in enumerate(
            [OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING, OrderStatus.SERVED], start=1
        ):
            service.transition(order.id, status, None, expected_version=version)

        with pytest.raises(IllegalTransitionError):
            service.cancel(order.id, None, "too late", expected_version=4)

    def test_cancel_reason_logged(self, db_session, active_session, seed_menu):
        """Should record the cancel reason in the log."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 1))
        service.cancel(order.id, None, "customer left", expected_version=1)

        assert service.get_logs(order.id)[-1].notes == "customer left"

    def test_complete_requires_payment(self, db_session, active_session, seed_menu):
        """Should refuse to complete an order that is not fully paid."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        order = place(db_session, active_session, (soup, 2))
        for version, status in enumerate(
            [OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING, OrderStatus.SERVED], start=1
        ):
            service.transition(order.id, status, None, expected_version=version)
        PaymentService(db_session).record_payment(order.id, 600, PaymentMethod.CASH)

        with pytest.raises(PaymentIncompleteError) as exc_info:
            service.complete(order.id, expected_version=4)

        assert exc_info.value.context["paid_cents"] == 600
        assert exc_info.value.context["total_cents"] == 1000

    def test_unknown_order(self, db_session, seed_branch):
        """Should fail for an unknown order."""
        with pytest.raises(OrderNotFoundError):
            OrderService(db_session).transition(404, OrderStatus.PREPARING, None, expected_version=1)


class TestQueues:
    """Tests for session and branch listings."""

    def test_branch_queue_filters_by_status(self, db_session, active_session, seed_menu, seed_branch):
        """Should return only orders in the requested statuses, oldest first."""
        soup, _ = seed_menu
        service = OrderService(db_session)
        first = place(db_session, active_session, (soup, 1))
        second = place(db_session, active_session, (soup, 1))
        service.transition(second.id, OrderStatus.PREPARING, None, expected_version=1)

        queue = service.list_branch_orders(seed_branch.id, OrderStatus.KITCHEN_VISIBLE)
        assert [o.id for o in queue] == [first.id, second.id]

        waiting = service.list_branch_orders(seed_branch.id, OrderStatus.WAITER_VISIBLE)
        assert waiting == []

    def test_session_orders(self, db_session, active_session, seed_menu):
        """Should list the orders of one session."""
        soup, lemonade = seed_menu
        first = place(db_session, active_session, (soup, 1))
        second = place(db_session, active_session, (lemonade, 3))

        orders = OrderService(db_session).list_session_orders(active_session.id)
        assert [o.id for o in orders] == [first.id, second.id]
