"""
Branch reports.
"""

from fastapi import APIRouter

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    get_branch, permission_context, restaurant_scope,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import ReportService
from shared.utils.schemas import BranchReport


router = APIRouter(tags=["admin-reports"])


@router.get("/branches/{branch_id}/reports", response_model=BranchReport)
def get_branch_report(
    branch_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> BranchReport:
    """Order counts by status, revenue from completed payments and live sessions."""
    restaurant_scope(ctx)
    branch = get_branch(db, branch_id)
    ctx.require(Action(
        Resource.REPORT,
        Verb.READ,
        restaurant_id=branch.restaurant_id,
        branch_id=branch.id,
    ))
    return ReportService(db).branch_report(branch.id)
