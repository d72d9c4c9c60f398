"""
Menu catalog endpoints.

The catalog is managed by the superadmin; admins may read it but every
mutation, branch availability overrides included, is refused for them.
"""

from fastapi import APIRouter, Query, status

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    default_branch, get_branch, permission_context, restaurant_scope, actor,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import MenuService
from shared.utils.schemas import (
    AvailabilityOverrideRequest,
    MenuItemCreate,
    MenuItemOutput,
    MenuItemUpdate,
)


router = APIRouter(tags=["admin-menu"])


def _menu_action(verb: Verb, restaurant_id: int, branch_id: int | None) -> Action:
    return Action(Resource.MENU_ITEM, verb, restaurant_id=restaurant_id, branch_id=branch_id)


@router.get("/menu", response_model=list[MenuItemOutput])
def list_menu(
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[MenuItemOutput]:
    """Menu items.

    With a branch, availability is the effective one for that branch;
    without, the whole catalog with each item's own flag.
    """
    restaurant_id = restaurant_scope(ctx)
    branch_id = default_branch(ctx.principal, branch_id)
    ctx.require(_menu_action(Verb.READ, restaurant_id, branch_id))

    service = MenuService(db)
    if branch_id is None:
        return service.list_all(restaurant_id)
    branch = get_branch(db, branch_id)
    return service.list_for_branch(restaurant_id, branch.id)


@router.post("/menu", response_model=MenuItemOutput, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    body: MenuItemCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> MenuItemOutput:
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_menu_action(Verb.CREATE, restaurant_id, body.branch_id))
    user_id, user_email = actor(ctx)
    return MenuService(db).create(body.model_dump(), restaurant_id, user_id, user_email)


@router.patch("/menu/{menu_item_id}", response_model=MenuItemOutput)
def update_menu_item(
    menu_item_id: int,
    body: MenuItemUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> MenuItemOutput:
    """Update an item. Price changes never affect orders already placed."""
    restaurant_id = restaurant_scope(ctx)
    service = MenuService(db)
    item = service.require_entity(menu_item_id, restaurant_id)
    ctx.require(_menu_action(Verb.UPDATE, restaurant_id, item.branch_id))
    user_id, user_email = actor(ctx)
    return service.update(
        menu_item_id,
        body.model_dump(exclude_unset=True, exclude_none=True),
        restaurant_id,
        user_id,
        user_email,
    )


@router.delete("/menu/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    menu_item_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> None:
    restaurant_id = restaurant_scope(ctx)
    service = MenuService(db)
    item = service.require_entity(menu_item_id, restaurant_id)
    ctx.require(_menu_action(Verb.DELETE, restaurant_id, item.branch_id))
    user_id, user_email = actor(ctx)
    service.delete(menu_item_id, restaurant_id, user_id, user_email)


@router.put("/menu/{menu_item_id}/availability/{branch_id}", response_model=MenuItemOutput)
def set_branch_availability(
    menu_item_id: int,
    branch_id: int,
    body: AvailabilityOverrideRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> MenuItemOutput:
    """Override an item's availability in one branch."""
    restaurant_id = restaurant_scope(ctx)
    ctx.require(_menu_action(Verb.UPDATE, restaurant_id, branch_id))
    return MenuService(db).set_branch_availability(
        menu_item_id,
        branch_id,
        restaurant_id,
        body.is_available,
        user_id=ctx.principal.user_id,
    )
