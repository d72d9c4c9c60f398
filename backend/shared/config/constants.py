"""
Centralized constants for the backend application.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import Roles, OrderStatus, ORDER_TRANSITIONS

    if status in OrderStatus.TERMINAL:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPERADMIN: Final[str] = "SUPERADMIN"
    ADMIN: Final[str] = "ADMIN"
    KITCHEN: Final[str] = "KITCHEN"
    WAITER: Final[str] = "WAITER"
    CUSTOMER: Final[str] = "CUSTOMER"

    ALL: Final[list[str]] = [SUPERADMIN, ADMIN, KITCHEN, WAITER, CUSTOMER]


# Role groups for common access patterns
MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.SUPERADMIN, Roles.ADMIN})
# Staff an ADMIN may create and off-board in its own branch
BRANCH_STAFF_ROLES: Final[frozenset[str]] = frozenset({Roles.KITCHEN, Roles.WAITER})
# Roles that are persisted as user accounts (customers are anonymous)
ACCOUNT_ROLES: Final[frozenset[str]] = frozenset(
    {Roles.SUPERADMIN, Roles.ADMIN, Roles.KITCHEN, Roles.WAITER}
)
# Roles refused an interactive login
LOGIN_DENIED_ROLES: Final[frozenset[str]] = frozenset({Roles.WAITER})


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order status constants."""

    ORDERED: Final[str] = "ORDERED"
    PREPARING: Final[str] = "PREPARING"
    PREPARED_WAITING: Final[str] = "PREPARED_WAITING"
    SERVED: Final[str] = "SERVED"
    COMPLETED: Final[str] = "COMPLETED"
    CANCELLED: Final[str] = "CANCELLED"

    ALL: Final[list[str]] = [ORDERED, PREPARING, PREPARED_WAITING, SERVED, COMPLETED, CANCELLED]
    TERMINAL: Final[frozenset[str]] = frozenset({COMPLETED, CANCELLED})
    CANCELLABLE: Final[frozenset[str]] = frozenset({ORDERED, PREPARING, PREPARED_WAITING})
    KITCHEN_VISIBLE: Final[list[str]] = [ORDERED, PREPARING]
    WAITER_VISIBLE: Final[list[str]] = [PREPARED_WAITING, SERVED]


class PaymentStatus:
    """Payment status constants."""

    PENDING: Final[str] = "PENDING"
    COMPLETED: Final[str] = "COMPLETED"
    FAILED: Final[str] = "FAILED"

    ALL: Final[list[str]] = [PENDING, COMPLETED, FAILED]


class PaymentMethod:
    """Payment method constants."""

    CASH: Final[str] = "CASH"
    CARD: Final[str] = "CARD"
    ONLINE: Final[str] = "ONLINE"

    ALL: Final[list[str]] = [CASH, CARD, ONLINE]
    # Settled at the table by staff, recorded as COMPLETED immediately
    IN_PERSON: Final[frozenset[str]] = frozenset({CASH, CARD})


# =============================================================================
# Status Transitions
# =============================================================================

# Valid order status transitions (from -> [allowed to states])
# Flow: ORDERED → PREPARING → PREPARED_WAITING → SERVED → COMPLETED
ORDER_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderStatus.ORDERED: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.PREPARED_WAITING, OrderStatus.CANCELLED],
    OrderStatus.PREPARED_WAITING: [OrderStatus.SERVED, OrderStatus.CANCELLED],
    OrderStatus.SERVED: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [],  # Terminal state
    OrderStatus.CANCELLED: [],  # Terminal state
}

# Transitions line staff may perform, keyed by role
KITCHEN_TRANSITIONS: Final[frozenset[tuple[str, str]]] = frozenset({
    (OrderStatus.ORDERED, OrderStatus.PREPARING),
    (OrderStatus.PREPARING, OrderStatus.PREPARED_WAITING),
})
WAITER_TRANSITIONS: Final[frozenset[tuple[str, str]]] = frozenset({
    (OrderStatus.PREPARED_WAITING, OrderStatus.SERVED),
})


# =============================================================================
# Landing routes
# =============================================================================

LOGIN_PATH: Final[str] = "/login"

ROLE_LANDING_PATHS: Final[dict[str, str]] = {
    Roles.SUPERADMIN: "/dashboard/superadmin",
    Roles.ADMIN: "/dashboard/admin",
    Roles.KITCHEN: LOGIN_PATH,
    Roles.WAITER: LOGIN_PATH,
    Roles.CUSTOMER: LOGIN_PATH,
}


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    # Price limits (in cents)
    MIN_PRICE_CENTS: Final[int] = 0
    MAX_PRICE_CENTS: Final[int] = 100_000_00

    MAX_ITEMS_PER_ORDER: Final[int] = 50
    MAX_SEAT_COUNT: Final[int] = 50

    # String lengths
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_NOTES_LENGTH: Final[int] = 500
    MIN_PASSWORD_LENGTH: Final[int] = 8


# =============================================================================
# Status Validation Functions
# =============================================================================


def validate_order_status(status: str) -> bool:
    """Validate that an order status is valid."""
    return status in OrderStatus.ALL


def validate_payment_status(status: str) -> bool:
    """Validate that a payment status is valid."""
    return status in PaymentStatus.ALL


def validate_order_transition(current_status: str, new_status: str) -> bool:
    """
    Validate that an order status transition is allowed.

    Returns True if transition is valid, False otherwise.
    """
    allowed = ORDER_TRANSITIONS.get(current_status, [])
    return new_status in allowed


def get_allowed_order_transitions(current_status: str) -> list[str]:
    """Get the statuses reachable in one step from current_status."""
    return list(ORDER_TRANSITIONS.get(current_status, []))
