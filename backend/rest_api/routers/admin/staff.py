"""
Staff management endpoints.

An admin manages the kitchen and waiter accounts of its own branch; admin
and superadmin accounts are managed by the superadmin.
"""

from fastapi import APIRouter, Query, status

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    default_branch, permission_context, restaurant_scope, actor,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import StaffService
from shared.utils.schemas import StaffCreate, StaffOutput, StaffUpdate


router = APIRouter(tags=["admin-staff"])


def _staff_action(
    verb: Verb,
    restaurant_id: int,
    branch_id: int | None,
    staff_role: str | None = None,
) -> Action:
    return Action(
        Resource.STAFF,
        verb,
        restaurant_id=restaurant_id,
        branch_id=branch_id,
        staff_role=staff_role,
    )


@router.get("/staff", response_model=list[StaffOutput])
def list_staff(
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[StaffOutput]:
    restaurant_id = restaurant_scope(ctx)
    branch_id = default_branch(ctx.principal, branch_id)
    ctx.require(_staff_action(Verb.READ, restaurant_id, branch_id))
    return StaffService(db).list_all(restaurant_id, branch_id=branch_id)


@router.post("/staff", response_model=StaffOutput, status_code=status.HTTP_201_CREATED)
def create_staff(
    body: StaffCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> StaffOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_staff_action(Verb.CREATE, restaurant_id, body.branch_id, body.role))
    user_id, user_email = actor(ctx)
    return StaffService(db).create(body.model_dump(), restaurant_id, user_id, user_email)


@router.get("/staff/{staff_id}", response_model=StaffOutput)
def get_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> StaffOutput:
    restaurant_id = restaurant_scope(ctx)
    service = StaffService(db)
    user = service.require_entity(staff_id, restaurant_id)
    ctx.require(_staff_action(Verb.READ, restaurant_id, user.branch_id, user.role))
    return service.to_output(user)


@router.patch("/staff/{staff_id}", response_model=StaffOutput)
def update_staff(
    staff_id: int,
    body: StaffUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> StaffOutput:
    """Update a staff account.

    The caller must be allowed to manage the account both as it is and as
    it will be, so an admin can neither promote staff nor move it out of
    its branch.
    """
    restaurant_id = restaurant_scope(ctx)
    service = StaffService(db)
    user = service.require_entity(staff_id, restaurant_id)
    # branch_id may be cleared explicitly; other fields are only ever set
    data = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "branch_id"
    }

    ctx.require(_staff_action(Verb.UPDATE, restaurant_id, user.branch_id, user.role))
    ctx.require(_staff_action(
        Verb.UPDATE,
        restaurant_id,
        data.get("branch_id", user.branch_id),
        data.get("role") or user.role,
    ))

    user_id, user_email = actor(ctx)
    return service.update(staff_id, data, restaurant_id, user_id, user_email)


@router.delete("/staff/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def offboard_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> None:
    """Off-board a staff member: the account is soft deleted and detached from its branch."""
    restaurant_id = restaurant_scope(ctx)
    service = StaffService(db)
    user = service.require_entity(staff_id, restaurant_id)
    ctx.require(_staff_action(Verb.DELETE, restaurant_id, user.branch_id, user.role))
    user_id, user_email = actor(ctx)
    service.delete(staff_id, restaurant_id, user_id, user_email)
