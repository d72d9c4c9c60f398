"""
Branch management endpoints.
"""

from fastapi import APIRouter, status

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    permission_context, restaurant_scope, actor,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import BranchService
from shared.config.constants import Roles
from shared.utils.schemas import AssignAdminRequest, BranchCreate, BranchOutput, BranchUpdate


router = APIRouter(tags=["admin-branches"])


def _branch_action(verb: Verb, restaurant_id: int, branch_id: int | None) -> Action:
    return Action(Resource.BRANCH, verb, restaurant_id=restaurant_id, branch_id=branch_id)


@router.get("/branches", response_model=list[BranchOutput])
def list_branches(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[BranchOutput]:
    """Branches of the restaurant the caller may read.

    A superadmin sees every branch, an admin only its own.
    """
    restaurant_id = restaurant_scope(ctx)
    return [
        branch
        for branch in BranchService(db).list_all(restaurant_id)
        if ctx.can(_branch_action(Verb.READ, restaurant_id, branch.id))
    ]


@router.post("/branches", response_model=BranchOutput, status_code=status.HTTP_201_CREATED)
def create_branch(
    body: BranchCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> BranchOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_branch_action(Verb.CREATE, restaurant_id, None))
    user_id, user_email = actor(ctx)
    return BranchService(db).create(body.model_dump(), restaurant_id, user_id, user_email)


@router.get("/branches/{branch_id}", response_model=BranchOutput)
def get_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> BranchOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_branch_action(Verb.READ, restaurant_id, branch_id))
    return BranchService(db).get_by_id(branch_id, restaurant_id)


@router.patch("/branches/{branch_id}", response_model=BranchOutput)
def update_branch(
    branch_id: int,
    body: BranchUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> BranchOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_branch_action(Verb.UPDATE, restaurant_id, branch_id))
    user_id, user_email = actor(ctx)
    return BranchService(db).update(
        branch_id,
        body.model_dump(exclude_unset=True, exclude_none=True),
        restaurant_id,
        user_id,
        user_email,
    )


@router.delete("/branches/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> None:
    """Soft delete a branch. 409 BranchNotEmpty while it has active sessions or staff."""
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_branch_action(Verb.DELETE, restaurant_id, branch_id))
    user_id, user_email = actor(ctx)
    BranchService(db).delete(branch_id, restaurant_id, user_id, user_email)


@router.put("/branches/{branch_id}/admin", response_model=BranchOutput)
def assign_branch_admin(
    branch_id: int,
    body: AssignAdminRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> BranchOutput:
    """Assign the branch admin, replacing the current one."""
    restaurant_id = restaurant_scope(ctx)
    ctx.require(Action(
        Resource.STAFF,
        Verb.UPDATE,
        restaurant_id=restaurant_id,
        branch_id=branch_id,
        staff_role=Roles.ADMIN,
    ))
    user_id, user_email = actor(ctx)
    return BranchService(db).assign_admin(branch_id, restaurant_id, body.user_id, user_id, user_email)
