"""
Shared dependencies and helpers for admin routers.

Every admin route resolves the caller's PermissionContext, scopes reads and
writes to the caller's restaurant and asks the policy before touching data.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.exceptions import ForbiddenError
from rest_api.routers._common import default_branch, get_branch, permission_context
from rest_api.services.permissions import Action, PermissionContext, Resource, Verb


def restaurant_scope(ctx: PermissionContext) -> int:
    """
    The caller's restaurant id.

    Raises:
        ForbiddenError: The principal carries no restaurant.
    """
    restaurant_id = ctx.principal.restaurant_id
    if restaurant_id is None:
        raise ForbiddenError("access the tenant directory without a restaurant")
    return restaurant_id


def actor(ctx: PermissionContext) -> tuple[int | None, str | None]:
    """(user id, email) recorded in audit columns."""
    return ctx.principal.user_id, ctx.principal.email


__all__ = [
    "Depends",
    "Session",
    "get_db",
    "get_branch",
    "default_branch",
    "permission_context",
    "restaurant_scope",
    "actor",
    "Action",
    "PermissionContext",
    "Resource",
    "Verb",
]
