"""
Table management endpoints.
"""

from fastapi import APIRouter, Query, status

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    default_branch, permission_context, restaurant_scope, actor,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import TableService
from shared.utils.schemas import TableCreate, TableOutput, TableUpdate


router = APIRouter(tags=["admin-tables"])


def _table_action(verb: Verb, restaurant_id: int, branch_id: int | None) -> Action:
    return Action(Resource.TABLE, verb, restaurant_id=restaurant_id, branch_id=branch_id)


@router.get("/tables", response_model=list[TableOutput])
def list_tables(
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[TableOutput]:
    """List tables, optionally filtered by branch.

    Branch-bound roles are limited to their own branch.
    """
    restaurant_id = restaurant_scope(ctx)
    branch_id = default_branch(ctx.principal, branch_id)
    ctx.require(_table_action(Verb.READ, restaurant_id, branch_id))
    return TableService(db).list_all(restaurant_id, branch_id=branch_id)


@router.post("/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> TableOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_table_action(Verb.CREATE, restaurant_id, body.branch_id))
    user_id, user_email = actor(ctx)
    return TableService(db).create(body.model_dump(), restaurant_id, user_id, user_email)


@router.patch("/tables/{table_id}", response_model=TableOutput)
def update_table(
    table_id: int,
    body: TableUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> TableOutput:
    """Renumber, resize or take a table in and out of service."""
    restaurant_id = restaurant_scope(ctx)
    service = TableService(db)
    table = service.require_entity(table_id, restaurant_id)
    ctx.require(_table_action(Verb.UPDATE, restaurant_id, table.branch_id))
    user_id, user_email = actor(ctx)
    return service.update(
        table_id,
        body.model_dump(exclude_unset=True, exclude_none=True),
        restaurant_id,
        user_id,
        user_email,
    )


@router.delete("/tables/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> None:
    """Soft delete a table. 409 TableInUse while a session is active on it."""
    restaurant_id = restaurant_scope(ctx)
    service = TableService(db)
    table = service.require_entity(table_id, restaurant_id)
    ctx.require(_table_action(Verb.DELETE, restaurant_id, table.branch_id))
    user_id, user_email = actor(ctx)
    service.delete(table_id, restaurant_id, user_id, user_email)
