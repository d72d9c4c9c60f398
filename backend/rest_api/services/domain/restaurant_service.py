"""
Restaurant Service.

The restaurant is the root of tenant scope. It is bootstrapped together with
its owning superadmin (see the ``create-restaurant`` CLI command); afterwards
only its descriptive fields change.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Restaurant, User
from shared.config.constants import Roles
from shared.config.logging import tenant_logger as logger, mask_email
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password
from shared.utils.exceptions import DuplicateEntityError, NotFoundError
from shared.utils.schemas import RestaurantOutput


class RestaurantService:
    """
    Service for restaurants.
    """

    def __init__(self, db: Session):
        self._db = db

    def require_entity(self, restaurant_id: int) -> Restaurant:
        restaurant = self._db.scalar(
            select(Restaurant).where(Restaurant.id == restaurant_id, Restaurant.is_active.is_(True))
        )
        if not restaurant:
            raise NotFoundError("Restaurant", restaurant_id)
        return restaurant

    def get_by_id(self, restaurant_id: int) -> RestaurantOutput:
        return RestaurantOutput.model_validate(self.require_entity(restaurant_id))

    def update(
        self,
        restaurant_id: int,
        data: dict[str, Any],
        user_id: int | None,
        user_email: str | None,
    ) -> RestaurantOutput:
        restaurant = self.require_entity(restaurant_id)
        for field_name, value in data.items():
            setattr(restaurant, field_name, value)
        restaurant.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(restaurant)

        logger.info("Restaurant updated", restaurant_id=restaurant_id, fields=sorted(data), user_id=user_id)
        return RestaurantOutput.model_validate(restaurant)

    def bootstrap(
        self,
        name: str,
        owner_email: str,
        owner_password: str,
        *,
        timezone: str = "UTC",
        currency: str = "USD",
        owner_name: str | None = None,
    ) -> tuple[Restaurant, User]:
        """
        Create a restaurant and the superadmin who owns it.

        Raises:
            DuplicateEntityError: The owner email is taken.
        """
        owner_email = owner_email.strip().lower()
        if self._db.scalar(select(User.id).where(User.email == owner_email)):
            raise DuplicateEntityError("Staff", owner_email)

        restaurant = Restaurant(name=name, timezone=timezone, currency=currency)
        self._db.add(restaurant)
        self._db.flush()

        owner = User(
            restaurant_id=restaurant.id,
            branch_id=None,
            email=owner_email,
            password=hash_password(owner_password),
            display_name=owner_name,
            role=Roles.SUPERADMIN,
            permissions=[],
        )
        self._db.add(owner)
        self._db.flush()

        restaurant.owner_super_admin_id = owner.id
        safe_commit(self._db)
        self._db.refresh(restaurant)
        self._db.refresh(owner)

        logger.info(
            "Restaurant created",
            restaurant_id=restaurant.id,
            owner_id=owner.id,
            owner_email=mask_email(owner_email),
        )
        return restaurant, owner
