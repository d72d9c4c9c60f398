"""
Restaurant (tenant root) endpoints.
"""

from fastapi import APIRouter

from rest_api.routers.admin._base import (
    Depends, Session, get_db,
    permission_context, restaurant_scope, actor,
    Action, PermissionContext, Resource, Verb,
)
from rest_api.services.domain import RestaurantService
from shared.utils.schemas import RestaurantOutput, RestaurantUpdate


router = APIRouter(tags=["admin-restaurant"])


@router.get("/restaurant", response_model=RestaurantOutput)
def get_restaurant(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> RestaurantOutput:
    """The caller's restaurant."""
    restaurant_id = restaurant_scope(ctx)
    ctx.require(Action(
        Resource.RESTAURANT,
        Verb.READ,
        restaurant_id=restaurant_id,
        branch_id=ctx.principal.branch_id,
    ))
    return RestaurantService(db).get_by_id(restaurant_id)


@router.patch("/restaurant", response_model=RestaurantOutput)
def update_restaurant(
    body: RestaurantUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> RestaurantOutput:
    """Update name, timezone or currency. Superadmin only."""
    restaurant_id = restaurant_scope(ctx)
    ctx.require(Action(Resource.RESTAURANT, Verb.UPDATE, restaurant_id=restaurant_id))
    user_id, user_email = actor(ctx)
    return RestaurantService(db).update(
        restaurant_id,
        body.model_dump(exclude_unset=True, exclude_none=True),
        user_id,
        user_email,
    )
