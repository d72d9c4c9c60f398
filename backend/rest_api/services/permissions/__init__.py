"""
Authorization policy: Strategy Pattern over the principal's role.

Usage:
    from rest_api.services.permissions import PermissionContext, Action, Resource, Verb

    ctx = PermissionContext(principal)
    ctx.require(Action(Resource.TABLE, Verb.CREATE, restaurant_id=1, branch_id=2))
"""

from .strategies import (
    Action,
    Allow,
    Deny,
    Decision,
    DenyReason,
    Resource,
    Verb,
    PermissionStrategy,
    SuperAdminStrategy,
    AdminStrategy,
    KitchenStrategy,
    WaiterStrategy,
    CustomerStrategy,
    authorize,
    get_strategy_for_role,
    landing_path_for,
)
from .context import PermissionContext

__all__ = [
    # Actions and decisions
    "Action",
    "Allow",
    "Deny",
    "Decision",
    "DenyReason",
    "Resource",
    "Verb",
    # Strategies
    "PermissionStrategy",
    "SuperAdminStrategy",
    "AdminStrategy",
    "KitchenStrategy",
    "WaiterStrategy",
    "CustomerStrategy",
    "authorize",
    "get_strategy_for_role",
    "landing_path_for",
    # Context
    "PermissionContext",
]
