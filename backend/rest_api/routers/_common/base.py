"""
Dependencies and helpers shared by the routers.
"""

from dataclasses import replace

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Branch
from rest_api.services.domain import StaffService
from rest_api.services.permissions import PermissionContext
from shared.config.constants import ACCOUNT_ROLES, Roles
from shared.config.logging import auth_logger as logger
from shared.infrastructure.db import get_db
from shared.security.auth import current_principal, optional_principal
from shared.security.claims import Principal
from shared.utils.exceptions import NotFoundError, UnauthorizedError


def refresh_staff_principal(db: Session, principal: Principal) -> Principal:
    """
    Re-check a staff principal against its account.

    Tokens outlive the account state they were signed with: an off-boarded
    account is refused with 401, and role, tenant, branch and permissions
    are taken from the account as it is now. Customers pass through.
    """
    if principal.role not in ACCOUNT_ROLES:
        return principal

    user = StaffService(db).get_account(principal.user_id) if principal.user_id is not None else None
    if user is None:
        logger.warning("Token for inactive account refused", user_id=principal.id)
        raise UnauthorizedError("Account is no longer active")

    return replace(
        principal,
        role=user.role,
        restaurant_id=user.restaurant_id,
        branch_id=user.branch_id,
        permissions=frozenset(user.permissions or []),
        email=user.email,
    )


def live_principal(
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> Principal:
    """FastAPI dependency: the caller's Principal, staff re-checked against the store."""
    return refresh_staff_principal(db, principal)


def optional_live_principal(
    principal: Principal | None = Depends(optional_principal),
    db: Session = Depends(get_db),
) -> Principal | None:
    """Like live_principal, but anonymous callers get None."""
    if principal is None:
        return None
    return refresh_staff_principal(db, principal)


def permission_context(principal: Principal = Depends(live_principal)) -> PermissionContext:
    """
    FastAPI dependency: the caller's PermissionContext.

    Usage:
        @router.get("/orders/{order_id}")
        def get_order(order_id: int, ctx: PermissionContext = Depends(permission_context)):
            ctx.require(Action(Resource.ORDER, Verb.READ, ...))
    """
    return PermissionContext(principal)


def get_branch(db: Session, branch_id: int) -> Branch:
    """Load a live branch for scope checks, regardless of tenant."""
    branch = db.scalar(select(Branch).where(Branch.id == branch_id, Branch.is_active.is_(True)))
    if not branch:
        raise NotFoundError("Branch", branch_id)
    return branch


def default_branch(principal: Principal, branch_id: int | None) -> int | None:
    """Branch-bound roles default to their own branch when none is given."""
    if branch_id is None and principal.role != Roles.SUPERADMIN:
        return principal.branch_id
    return branch_id
