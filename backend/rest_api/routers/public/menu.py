"""
Public menu endpoint.

What a customer at a table sees: the items currently available in the
branch, with restaurant prices.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.schemas import MenuItemOutput
from rest_api.routers._common import get_branch
from rest_api.services.domain import MenuService


router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/menu/{branch_id}", response_model=list[MenuItemOutput])
def get_public_menu(branch_id: int, db: Session = Depends(get_db)) -> list[MenuItemOutput]:
    branch = get_branch(db, branch_id)
    return MenuService(db).list_for_branch(branch.restaurant_id, branch.id, available_only=True)
