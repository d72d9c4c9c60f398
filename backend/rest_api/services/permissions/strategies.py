"""
Permission Strategy implementations.
Strategy Pattern for role-based, tenant-scoped access control.

Each strategy decides, for its role, whether a principal may perform an
action. Decisions are pure: no I/O, no side effects, and every denial carries
a stable reason string.

Rules per role, first match wins:
- SUPERADMIN: anything inside its own restaurant.
- ADMIN: anything inside its own branch, except menu mutations; staff
  management is limited to KITCHEN and WAITER accounts.
- KITCHEN: ORDERED->PREPARING and PREPARING->PREPARED_WAITING, plus reading
  the orders of its branch.
- WAITER: PREPARED_WAITING->SERVED, recording payments, reading the orders
  and payments of its branch.
- CUSTOMER: creating orders in, and reading, its own session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from shared.config.constants import (
    Roles,
    BRANCH_STAFF_ROLES,
    KITCHEN_TRANSITIONS,
    WAITER_TRANSITIONS,
    ROLE_LANDING_PATHS,
    LOGIN_PATH,
)

if TYPE_CHECKING:
    from shared.security.claims import Principal


# =============================================================================
# Actions and decisions
# =============================================================================


class Resource(str, Enum):
    RESTAURANT = "RESTAURANT"
    BRANCH = "BRANCH"
    TABLE = "TABLE"
    MENU_ITEM = "MENU_ITEM"
    STAFF = "STAFF"
    SESSION = "SESSION"
    ORDER = "ORDER"
    PAYMENT = "PAYMENT"
    REPORT = "REPORT"


class Verb(str, Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRANSITION = "TRANSITION"


MUTATING_VERBS = frozenset({Verb.CREATE, Verb.UPDATE, Verb.DELETE, Verb.TRANSITION})


@dataclass(frozen=True)
class Action:
    """
    A requested action: resource type, verb and the target's scope ids.

    ``from_status``/``to_status`` describe an order transition;
    ``staff_role`` is the role of the staff account being managed.
    """

    resource: Resource
    verb: Verb
    restaurant_id: int | None = None
    branch_id: int | None = None
    session_id: int | None = None
    from_status: str | None = None
    to_status: str | None = None
    staff_role: str | None = None

    @property
    def is_mutation(self) -> bool:
        return self.verb in MUTATING_VERBS


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str
    allowed = False


Decision = Allow | Deny

ALLOW = Allow()


class DenyReason:
    """Stable deny reasons, part of the API contract."""

    RESTAURANT_SCOPE = "restaurant scope mismatch"
    BRANCH_SCOPE = "branch scope mismatch"
    SESSION_SCOPE = "session scope mismatch"
    MENU_READ_ONLY = "menu catalog is read-only for admin"
    STAFF_ROLE = "admin may only manage kitchen and waiter staff"
    TRANSITION = "transition not permitted for role"
    ROLE = "role not permitted for this action"


# =============================================================================
# Base Permission Strategy
# =============================================================================


class BranchScopeMixin:
    """Mixin providing the branch scope check shared by branch-bound roles."""

    def _branch_scope(self, principal: Principal, action: Action) -> Decision:
        if principal.branch_id is None or action.branch_id != principal.branch_id:
            return Deny(DenyReason.BRANCH_SCOPE)
        return ALLOW


class PermissionStrategy(ABC):
    """
    Abstract base for permission strategies.

    Each implementation defines access rules for a specific role.
    """

    @property
    @abstractmethod
    def role_name(self) -> str:
        """Return the role this strategy handles."""
        ...

    @abstractmethod
    def decide(self, principal: Principal, action: Action) -> Decision:
        """Allow or deny ``action`` for ``principal``."""
        ...


class SuperAdminStrategy(PermissionStrategy):
    """
    Superadmin owns exactly one restaurant; it is not global.
    """

    @property
    def role_name(self) -> str:
        return Roles.SUPERADMIN

    def decide(self, principal: Principal, action: Action) -> Decision:
        if principal.restaurant_id is None or action.restaurant_id != principal.restaurant_id:
            return Deny(DenyReason.RESTAURANT_SCOPE)
        return ALLOW


class AdminStrategy(BranchScopeMixin, PermissionStrategy):
    """
    Admin manages one branch. The menu is read-only for admins.
    """

    @property
    def role_name(self) -> str:
        return Roles.ADMIN

    def decide(self, principal: Principal, action: Action) -> Decision:
        if action.resource == Resource.MENU_ITEM and action.is_mutation:
            return Deny(DenyReason.MENU_READ_ONLY)

        if action.restaurant_id is not None and action.restaurant_id != principal.restaurant_id:
            return Deny(DenyReason.RESTAURANT_SCOPE)

        scope = self._branch_scope(principal, action)
        if not scope.allowed:
            return scope

        if (
            action.resource == Resource.STAFF
            and action.is_mutation
            and action.staff_role not in BRANCH_STAFF_ROLES
        ):
            return Deny(DenyReason.STAFF_ROLE)

        return ALLOW


class KitchenStrategy(BranchScopeMixin, PermissionStrategy):
    """
    Kitchen staff moves orders through preparation and reads its branch queue.
    """

    @property
    def role_name(self) -> str:
        return Roles.KITCHEN

    def decide(self, principal: Principal, action: Action) -> Decision:
        if action.resource != Resource.ORDER:
            return Deny(DenyReason.ROLE)

        if action.verb == Verb.TRANSITION:
            if (action.from_status, action.to_status) not in KITCHEN_TRANSITIONS:
                return Deny(DenyReason.TRANSITION)
            return self._branch_scope(principal, action)

        if action.verb == Verb.READ:
            return self._branch_scope(principal, action)

        return Deny(DenyReason.ROLE)


class WaiterStrategy(BranchScopeMixin, PermissionStrategy):
    """
    Waiters serve prepared orders and record payments at the table.
    """

    @property
    def role_name(self) -> str:
        return Roles.WAITER

    def decide(self, principal: Principal, action: Action) -> Decision:
        if action.resource == Resource.ORDER:
            if action.verb == Verb.TRANSITION:
                if (action.from_status, action.to_status) not in WAITER_TRANSITIONS:
                    return Deny(DenyReason.TRANSITION)
                return self._branch_scope(principal, action)
            if action.verb == Verb.READ:
                return self._branch_scope(principal, action)

        if action.resource == Resource.PAYMENT and action.verb in (Verb.CREATE, Verb.READ):
            return self._branch_scope(principal, action)

        return Deny(DenyReason.ROLE)


class CustomerStrategy(PermissionStrategy):
    """
    Customers act only inside the session their table token is bound to.
    """

    ALLOWED = frozenset({
        (Resource.ORDER, Verb.CREATE),
        (Resource.ORDER, Verb.READ),
        (Resource.SESSION, Verb.READ),
    })

    @property
    def role_name(self) -> str:
        return Roles.CUSTOMER

    def decide(self, principal: Principal, action: Action) -> Decision:
        if (action.resource, action.verb) not in self.ALLOWED:
            return Deny(DenyReason.ROLE)
        if principal.session_id is None or action.session_id != principal.session_id:
            return Deny(DenyReason.SESSION_SCOPE)
        return ALLOW


class DenyAllStrategy(PermissionStrategy):
    """Fallback for principals whose role has no strategy."""

    @property
    def role_name(self) -> str:
        return "UNKNOWN"

    def decide(self, principal: Principal, action: Action) -> Decision:
        return Deny(DenyReason.ROLE)


# =============================================================================
# Strategy Registry
# =============================================================================


STRATEGY_REGISTRY: dict[str, PermissionStrategy] = {
    Roles.SUPERADMIN: SuperAdminStrategy(),
    Roles.ADMIN: AdminStrategy(),
    Roles.KITCHEN: KitchenStrategy(),
    Roles.WAITER: WaiterStrategy(),
    Roles.CUSTOMER: CustomerStrategy(),
}

_DENY_ALL = DenyAllStrategy()


def get_strategy_for_role(role: str) -> PermissionStrategy:
    """Get the permission strategy for a role."""
    return STRATEGY_REGISTRY.get(role, _DENY_ALL)


def authorize(principal: Principal, action: Action) -> Decision:
    """
    Decide whether ``principal`` may perform ``action``.

    Usage:
        decision = authorize(principal, Action(Resource.ORDER, Verb.READ, branch_id=3))
        if not decision.allowed:
            print(decision.reason)
    """
    return get_strategy_for_role(principal.role).decide(principal, action)


def landing_path_for(role: str) -> str:
    """Route a freshly authenticated role lands on. Total over any input."""
    return ROLE_LANDING_PATHS.get(role, LOGIN_PATH)
