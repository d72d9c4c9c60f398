"""
Tests for the tenant directory: restaurants, branches, tables, menu and staff.
"""

import pytest

from rest_api.models import Branch, User
from rest_api.services.domain import (
    BranchService,
    MenuService,
    OrderService,
    PaymentService,
    ReportService,
    RestaurantService,
    StaffService,
    TableService,
)
from shared.config.constants import OrderStatus, PaymentMethod, Roles
from shared.utils.exceptions import (
    BranchNotEmptyError,
    DuplicateEntityError,
    NotFoundError,
    TableInUseError,
    ValidationError,
)
from shared.utils.schemas import OrderItemInput


class TestRestaurant:
    """Tests for restaurant bootstrap and updates."""

    def test_bootstrap_creates_owner(self, db_session):
        """Should create the restaurant together with its superadmin."""
        restaurant, owner = RestaurantService(db_session).bootstrap(
            "Bistro", " Owner@Bistro.io ", "secret123", currency="EUR"
        )

        assert restaurant.owner_super_admin_id == owner.id
        assert owner.role == Roles.SUPERADMIN
        assert owner.branch_id is None
        assert owner.email == "owner@bistro.io"
        assert restaurant.currency == "EUR"

    def test_bootstrap_duplicate_email(self, db_session, seed_superadmin):
        """Should refuse an owner email that is already taken."""
        with pytest.raises(DuplicateEntityError):
            RestaurantService(db_session).bootstrap("Copy", seed_superadmin.email, "secret123")

    def test_update(self, db_session, seed_restaurant, seed_superadmin):
        """Should change descriptive fields only."""
        output = RestaurantService(db_session).update(
            seed_restaurant.id, {"name": "Renamed"}, seed_superadmin.id, seed_superadmin.email
        )
        assert output.name == "Renamed"
        assert output.owner_super_admin_id == seed_superadmin.id


class TestBranches:
    """Tests for branch management."""

    def test_create_and_list(self, db_session, seed_restaurant, seed_branch):
        """Should list the restaurant's live branches by name."""
        service = BranchService(db_session)
        service.create({"name": "Annex"}, seed_restaurant.id, None, None)

        names = [b.name for b in service.list_all(seed_restaurant.id)]
        assert names == ["Annex", "Main Branch"]

    def test_delete_empty_branch(self, db_session, seed_restaurant, seed_other_branch):
        """Should soft delete a branch with no sessions and no staff."""
        service = BranchService(db_session)
        service.delete(seed_other_branch.id, seed_restaurant.id, None, None)

        assert service.get_entity(seed_other_branch.id, seed_restaurant.id) is None
        assert db_session.get(Branch, seed_other_branch.id).is_active is False

    def test_delete_with_staff(self, db_session, seed_restaurant, seed_branch, seed_admin):
        """Should refuse to delete a branch that still has staff."""
        with pytest.raises(BranchNotEmptyError) as exc_info:
            BranchService(db_session).delete(seed_branch.id, seed_restaurant.id, None, None)
        assert exc_info.value.context["assigned_staff"] == 1

    def test_delete_with_active_session(self, db_session, seed_restaurant, seed_branch, active_session):
        """Should refuse to delete a branch with an active session."""
        with pytest.raises(BranchNotEmptyError) as exc_info:
            BranchService(db_session).delete(seed_branch.id, seed_restaurant.id, None, None)
        assert exc_info.value.context["active_sessions"] == 1

    def test_other_restaurant_branch_hidden(self, db_session, seed_restaurant, seed_other_restaurant):
        """Should not find another restaurant's branch."""
        _, foreign_branch = seed_other_restaurant
        with pytest.raises(NotFoundError):
            BranchService(db_session).require_entity(foreign_branch.id, seed_restaurant.id)

    def test_assign_admin_replaces_previous(
        self, db_session, seed_restaurant, seed_branch, seed_admin
    ):
        """Should assign the new admin and release the previous one."""
        staff = StaffService(db_session)
        newcomer = staff.create(
            {"email": "second@tableflow.io", "password": "secret123", "role": Roles.ADMIN, "branch_id": None},
            seed_restaurant.id, None, None,
        )

        branch = BranchService(db_session).assign_admin(seed_branch.id, seed_restaurant.id, newcomer.id)

        assert branch.admin_user_id == newcomer.id
        assert db_session.get(User, newcomer.id).branch_id == seed_branch.id
        assert db_session.get(User, seed_admin.id).branch_id is None

    def test_assign_non_admin(self, db_session, seed_restaurant, seed_branch, seed_kitchen):
        """Should refuse to make a non-admin the branch admin."""
        with pytest.raises(ValidationError):
            BranchService(db_session).assign_admin(seed_branch.id, seed_restaurant.id, seed_kitchen.id)


class TestTables:
    """Tests for table management."""

    def test_duplicate_number(self, db_session, seed_restaurant, seed_branch, seed_table):
        """Should refuse a second table with the same number in a branch."""
        with pytest.raises(DuplicateEntityError):
            TableService(db_session).create(
                {"branch_id": seed_branch.id, "table_number": seed_table.table_number, "seat_count": 2},
                seed_restaurant.id, None, None,
            )

    def test_same_number_other_branch(self, db_session, seed_restaurant, seed_other_branch, seed_table):
        """Should allow the same number in a different branch."""
        table = TableService(db_session).create(
            {"branch_id": seed_other_branch.id, "table_number": seed_table.table_number, "seat_count": 2},
            seed_restaurant.id, None, None,
        )
        assert table.branch_id == seed_other_branch.id

    def test_delete_in_use(self, db_session, seed_restaurant, seed_table, active_session):
        """Should refuse to delete a table with an active session."""
        with pytest.raises(TableInUseError) as exc_info:
            TableService(db_session).delete(seed_table.id, seed_restaurant.id, None, None)
        assert exc_info.value.context["session_id"] == active_session.id

    def test_delete_free_table(self, db_session, seed_restaurant, seed_table):
        """Should soft delete a free table."""
        service = TableService(db_session)
        service.delete(seed_table.id, seed_restaurant.id, None, None)
        assert service.list_all(seed_restaurant.id) == []


class TestMenu:
    """Tests for the menu catalog and branch availability."""

    def test_branch_override(self, db_session, seed_restaurant, seed_branch, seed_other_branch, seed_menu):
        """Should hide an item in one branch only."""
        soup, _ = seed_menu
        service = MenuService(db_session)
        output = service.set_branch_availability(soup.id, seed_branch.id, seed_restaurant.id, False)
        assert output.is_available is False

        main = {i.name: i.is_available for i in service.list_for_branch(seed_restaurant.id, seed_branch.id)}
        other = {i.name: i.is_available for i in service.list_for_branch(seed_restaurant.id, seed_other_branch.id)}
        assert main == {"Lemonade": True, "Soup": False}
        assert other == {"Lemonade": True, "Soup": True}

        available = service.list_for_branch(seed_restaurant.id, seed_branch.id, available_only=True)
        assert [i.name for i in available] == ["Lemonade"]

    def test_override_replaced(self, db_session, seed_restaurant, seed_branch, seed_menu):
        """Should replace an existing override instead of adding another."""
        soup, _ = seed_menu
        service = MenuService(db_session)
        service.set_branch_availability(soup.id, seed_branch.id, seed_restaurant.id, False)
        output = service.set_branch_availability(soup.id, seed_branch.id, seed_restaurant.id, True)

        assert output.is_available is True
        assert len(service.branch_overrides(seed_branch.id)) == 1

    def test_pinned_item_other_branch(self, db_session, seed_restaurant, seed_branch, seed_other_branch):
        """Should refuse an override for an item pinned to another branch."""
        service = MenuService(db_session)
        pinned = service.create(
            {"name": "Special", "price_cents": 1200, "category": "Mains", "branch_id": seed_other_branch.id},
            seed_restaurant.id, None, None,
        )

        with pytest.raises(ValidationError):
            service.set_branch_availability(pinned.id, seed_branch.id, seed_restaurant.id, True)
        offered = [i.name for i in service.list_for_branch(seed_restaurant.id, seed_branch.id)]
        assert "Special" not in offered


class TestStaff:
    """Tests for staff accounts."""

    def test_create_hashes_password(self, db_session, seed_restaurant, seed_branch):
        """Should store a bcrypt hash and a normalized email."""
        output = StaffService(db_session).create(
            {"email": "Cook@Tableflow.io", "password": "secret123", "role": Roles.KITCHEN, "branch_id": seed_branch.id},
            seed_restaurant.id, None, None,
        )

        user = db_session.get(User, output.id)
        assert user.email == "cook@tableflow.io"
        assert user.password != "secret123"
        assert StaffService(db_session).authenticate("cook@tableflow.io", "secret123").id == output.id

    def test_line_staff_needs_branch(self, db_session, seed_restaurant):
        """Should require a branch for kitchen and waiter staff."""
        with pytest.raises(ValidationError):
            StaffService(db_session).create(
                {"email": "w@tableflow.io", "password": "secret123", "role": Roles.WAITER, "branch_id": None},
                seed_restaurant.id, None, None,
            )

    def test_duplicate_email(self, db_session, seed_restaurant, seed_branch, seed_kitchen):
        """Should refuse an email already in use."""
        with pytest.raises(DuplicateEntityError):
            StaffService(db_session).create(
                {"email": seed_kitchen.email, "password": "secret123", "role": Roles.KITCHEN, "branch_id": seed_branch.id},
                seed_restaurant.id, None, None,
            )

    def test_foreign_branch(self, db_session, seed_restaurant, seed_other_restaurant):
        """Should refuse a branch of another restaurant."""
        _, foreign_branch = seed_other_restaurant
        with pytest.raises(NotFoundError):
            StaffService(db_session).create(
                {"email": "x@tableflow.io", "password": "secret123", "role": Roles.KITCHEN, "branch_id": foreign_branch.id},
                seed_restaurant.id, None, None,
            )

    def test_offboard_admin_frees_seat(self, db_session, seed_restaurant, seed_branch, seed_admin):
        """Should detach an off-boarded admin from its branch."""
        StaffService(db_session).delete(seed_admin.id, seed_restaurant.id, None, None)

        assert db_session.get(Branch, seed_branch.id).admin_user_id is None
        user = db_session.get(User, seed_admin.id)
        assert user.is_active is False
        assert user.branch_id is None
        assert StaffService(db_session).authenticate(seed_admin.email, "testpass123") is None

    def test_demote_admin_frees_seat(self, db_session, seed_restaurant, seed_branch, seed_admin):
        """Should clear the branch's admin seat when its admin is demoted."""
        StaffService(db_session).update(seed_admin.id, {"role": Roles.WAITER}, seed_restaurant.id, None, None)

        assert db_session.get(Branch, seed_branch.id).admin_user_id is None
        user = db_session.get(User, seed_admin.id)
        assert user.role == Roles.WAITER
        assert user.branch_id == seed_branch.id

    def test_move_admin_frees_old_seat(
        self, db_session, seed_restaurant, seed_branch, seed_other_branch, seed_admin
    ):
        """Should clear the old branch's admin seat when its admin moves elsewhere."""
        StaffService(db_session).update(
            seed_admin.id, {"branch_id": seed_other_branch.id}, seed_restaurant.id, None, None
        )

        assert db_session.get(Branch, seed_branch.id).admin_user_id is None
        assert db_session.get(User, seed_admin.id).branch_id == seed_other_branch.id

    def test_rename_admin_keeps_seat(self, db_session, seed_restaurant, seed_branch, seed_admin):
        """Should keep the seat when the admin stays in its role and branch."""
        StaffService(db_session).update(
            seed_admin.id, {"display_name": "Head Manager"}, seed_restaurant.id, None, None
        )

        assert db_session.get(Branch, seed_branch.id).admin_user_id == seed_admin.id

    def test_wrong_password(self, db_session, seed_kitchen):
        """Should return None for a wrong password."""
        assert StaffService(db_session).authenticate(seed_kitchen.email, "wrong-password") is None


class TestReports:
    """Tests for branch reports."""

    def test_branch_report(self, db_session, seed_branch, active_session, seed_menu):
        """Should count orders by status and sum completed payments."""
        soup, lemonade = seed_menu
        orders = OrderService(db_session)
        paid = orders.create_order(active_session.id, [OrderItemInput(menu_item_id=soup.id, quantity=2)])
        cancelled = orders.create_order(active_session.id, [OrderItemInput(menu_item_id=lemonade.id, quantity=1)])
        orders.cancel(cancelled.id, None, None, expected_version=1)
        PaymentService(db_session).record_payment(paid.id, 1000, PaymentMethod.CASH)

        report = ReportService(db_session).branch_report(seed_branch.id)

        assert report.total_orders == 2
        assert report.orders_by_status[OrderStatus.ORDERED] == 1
        assert report.orders_by_status[OrderStatus.CANCELLED] == 1
        assert report.total_revenue_cents == 1000
        assert report.active_sessions == 1
        assert report.average_order_value_cents == 1000
