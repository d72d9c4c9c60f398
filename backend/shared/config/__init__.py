"""
Configuration: environment settings, structured logging, domain constants.
"""

from shared.config.settings import settings, Settings
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    ACCOUNT_ROLES,
    BRANCH_STAFF_ROLES,
    MANAGEMENT_ROLES,
    ORDER_TRANSITIONS,
    Limits,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Roles,
)

__all__ = [
    "settings",
    "Settings",
    "get_logger",
    "setup_logging",
    "ACCOUNT_ROLES",
    "BRANCH_STAFF_ROLES",
    "MANAGEMENT_ROLES",
    "ORDER_TRANSITIONS",
    "Limits",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Roles",
]
