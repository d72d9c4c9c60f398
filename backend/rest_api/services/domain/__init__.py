"""
Domain Services - application layer.

Services contain business logic and orchestrate persistence. They are
policy-agnostic: routers authorize through PermissionContext first.

Structure:
    Router (thin controller, authorization)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    # In router
    service = OrderService(db)
    order = service.transition(order_id, "PREPARING", user_id, expected_version=1)
"""

from .session_service import SessionService
from .order_service import OrderService
from .payment_service import PaymentService
from .menu_service import MenuService
from .branch_service import BranchService
from .table_service import TableService
from .staff_service import StaffService
from .restaurant_service import RestaurantService
from .report_service import ReportService

__all__ = [
    # Lifecycle
    "SessionService",
    "OrderService",
    "PaymentService",
    # Tenant directory
    "MenuService",
    "BranchService",
    "TableService",
    "StaffService",
    "RestaurantService",
    "ReportService",
]
