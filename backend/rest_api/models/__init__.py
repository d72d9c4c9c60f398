"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin and AuditMixin
- tenant: Restaurant, Branch
- user: User (staff accounts)
- table: Table, DiningSession
- catalog: MenuItem, BranchMenuAvailability
- order: Order, OrderItem, OrderLog
- billing: Payment
"""

# Base classes
from .base import Base, AuditMixin, TimestampMixin

# Core tenant models
from .tenant import Restaurant, Branch

# Staff accounts
from .user import User

# Tables and dining sessions
from .table import Table, DiningSession

# Catalog (menu)
from .catalog import MenuItem, BranchMenuAvailability

# Orders
from .order import Order, OrderItem, OrderLog

# Billing
from .billing import Payment

__all__ = [
    # Base
    "Base",
    "AuditMixin",
    "TimestampMixin",
    # Tenant
    "Restaurant",
    "Branch",
    # User
    "User",
    # Table
    "Table",
    "DiningSession",
    # Catalog
    "MenuItem",
    "BranchMenuAvailability",
    # Order
    "Order",
    "OrderItem",
    "OrderLog",
    # Billing
    "Payment",
]
