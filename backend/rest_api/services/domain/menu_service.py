"""
Menu Domain Service.

The catalog is restaurant-owned: prices are restaurant-scoped and never vary
per branch. A branch may only override availability.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Branch, BranchMenuAvailability, MenuItem
from rest_api.services.base_service import BaseCRUDService
from shared.config.logging import tenant_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.schemas import MenuItemOutput


def is_available_in_branch(
    item: MenuItem,
    branch_id: int,
    override: BranchMenuAvailability | None = None,
) -> bool:
    """
    Effective availability of an item in a branch.

    Items pinned to another branch are never available; a branch override
    wins over the item's own flag.
    """
    if not item.is_active:
        return False
    if item.branch_id is not None and item.branch_id != branch_id:
        return False
    if override is not None:
        return override.is_available
    return item.is_available


class MenuService(BaseCRUDService[MenuItem, MenuItemOutput]):
    """
    Domain service for the menu catalog.
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MenuItem,
            output_schema=MenuItemOutput,
            entity_name="MenuItem",
        )

    def branch_overrides(
        self,
        branch_id: int,
        menu_item_ids: list[int] | None = None,
    ) -> dict[int, BranchMenuAvailability]:
        query = select(BranchMenuAvailability).where(BranchMenuAvailability.branch_id == branch_id)
        if menu_item_ids is not None:
            query = query.where(BranchMenuAvailability.menu_item_id.in_(menu_item_ids))
        return {o.menu_item_id: o for o in self._db.scalars(query).all()}

    def list_for_branch(
        self,
        restaurant_id: int,
        branch_id: int,
        *,
        available_only: bool = False,
    ) -> list[MenuItemOutput]:
        """Items offered in a branch, with their effective availability."""
        items = self._db.scalars(
            self._scoped(restaurant_id)
            .where((MenuItem.branch_id.is_(None)) | (MenuItem.branch_id == branch_id))
            .order_by(MenuItem.category, MenuItem.name, MenuItem.id)
        ).all()
        overrides = self.branch_overrides(branch_id)

        result = []
        for item in items:
            output = self.to_output(item).model_copy(
                update={"is_available": is_available_in_branch(item, branch_id, overrides.get(item.id))}
            )
            if available_only and not output.is_available:
                continue
            result.append(output)
        return result

    def set_branch_availability(
        self,
        menu_item_id: int,
        branch_id: int,
        restaurant_id: int,
        is_available: bool,
        user_id: int | None = None,
    ) -> MenuItemOutput:
        """
        Create or replace a branch's availability override for an item.

        Raises:
            NotFoundError: Unknown item or branch in this restaurant.
            ValidationError: The item is pinned to another branch.
        """
        item = self.require_entity(menu_item_id, restaurant_id)
        branch = self._db.scalar(
            select(Branch).where(
                Branch.id == branch_id,
                Branch.restaurant_id == restaurant_id,
                Branch.is_active.is_(True),
            )
        )
        if not branch:
            raise NotFoundError("Branch", branch_id)
        if item.branch_id is not None and item.branch_id != branch_id:
            raise ValidationError(
                "Menu item belongs to another branch",
                menu_item_id=menu_item_id,
                branch_id=branch_id,
            )

        override = self.branch_overrides(branch_id, [menu_item_id]).get(menu_item_id)
        if override is None:
            override = BranchMenuAvailability(branch_id=branch_id, menu_item_id=menu_item_id, is_available=is_available)
            self._db.add(override)
        else:
            override.is_available = is_available
        safe_commit(self._db)

        logger.info(
            "Menu availability overridden",
            menu_item_id=menu_item_id,
            branch_id=branch_id,
            is_available=is_available,
            user_id=user_id,
        )
        return self.to_output(item).model_copy(
            update={"is_available": is_available_in_branch(item, branch_id, override)}
        )

    def _validate_create(self, data: dict[str, Any], restaurant_id: int) -> None:
        branch_id = data.get("branch_id")
        if branch_id is None:
            return
        exists = self._db.scalar(
            select(Branch.id).where(
                Branch.id == branch_id,
                Branch.restaurant_id == restaurant_id,
                Branch.is_active.is_(True),
            )
        )
        if not exists:
            raise NotFoundError("Branch", branch_id)
