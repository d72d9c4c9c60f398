"""
Staff Service.

Handles staff accounts of a restaurant:
- User CRUD with password hashing
- Off-boarding (soft delete, branch detached, admin seat released)
- Credential checks for the login endpoint

Usage:
    from rest_api.services.domain import StaffService

    service = StaffService(db)
    staff = service.list_all(restaurant_id, branch_id=3)
    user = service.authenticate("cook@demo.tableflow.io", "secret123")
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Branch, User
from rest_api.services.base_service import BaseCRUDService
from shared.config.constants import Roles, BRANCH_STAFF_ROLES
from shared.config.logging import tenant_logger as logger, mask_email
from shared.security.password import hash_password, verify_password
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from shared.utils.schemas import StaffOutput


class StaffService(BaseCRUDService[User, StaffOutput]):
    """
    Service for staff (user) management.

    Business rules:
    - Emails are unique across restaurants
    - KITCHEN and WAITER accounts always belong to a branch
    - Off-boarding detaches the user from its branch and frees any admin seat
    - Demoting an admin or moving it to another branch frees its old seat
    """

    def __init__(self, db: Session):
        super().__init__(db=db, model=User, output_schema=StaffOutput, entity_name="Staff")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_by_email(self, email: str) -> User | None:
        return self._db.scalar(
            select(User).where(User.email == email.strip().lower(), User.is_active.is_(True))
        )

    def get_account(self, user_id: int) -> User | None:
        """The active account with this id, in any restaurant."""
        return self._db.scalar(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the active user for these credentials, or None."""
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password):
            logger.warning("Invalid credentials", email=mask_email(email))
            return None
        return user

    def list_all(
        self,
        restaurant_id: int,
        *,
        branch_id: int | None = None,
        order_by: Any | None = None,
    ) -> list[StaffOutput]:
        return super().list_all(
            restaurant_id,
            branch_id=branch_id,
            order_by=order_by if order_by is not None else User.email,
        )

    # =========================================================================
    # Hooks
    # =========================================================================

    def _check_branch(self, branch_id: int | None, restaurant_id: int) -> None:
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

    def _validate_create(self, data: dict[str, Any], restaurant_id: int) -> None:
        data["email"] = data["email"].strip().lower()
        if self._db.scalar(select(User.id).where(User.email == data["email"])):
            raise DuplicateEntityError("Staff", data["email"])

        if data.get("role") in BRANCH_STAFF_ROLES and data.get("branch_id") is None:
            raise ValidationError(f"{data['role']} staff must be assigned to a branch", field="branch_id")
        self._check_branch(data.get("branch_id"), restaurant_id)

        data["password"] = hash_password(data["password"])
        data["permissions"] = list(data.get("permissions") or [])

    def _validate_update(self, entity: User, data: dict[str, Any]) -> None:
        role = data.get("role", entity.role)
        branch_id = data.get("branch_id", entity.branch_id)
        if role in BRANCH_STAFF_ROLES and branch_id is None:
            raise ValidationError(f"{role} staff must be assigned to a branch", field="branch_id")
        if "branch_id" in data:
            self._check_branch(data["branch_id"], entity.restaurant_id)
        if data.get("password"):
            data["password"] = hash_password(data["password"])
        else:
            data.pop("password", None)
        if role != Roles.ADMIN or branch_id != entity.branch_id:
            self._release_admin_seat(entity)

    def _release_admin_seat(self, entity: User) -> None:
        """Clear the admin seat of the branch ``entity`` currently manages, if any."""
        if entity.role != Roles.ADMIN or entity.branch_id is None:
            return
        branch = self._db.get(Branch, entity.branch_id)
        if branch is not None and branch.admin_user_id == entity.id:
            branch.admin_user_id = None
            logger.info("Admin seat released", branch_id=branch.id, user_id=entity.id)

    def _after_delete(self, entity: User) -> None:
        self._release_admin_seat(entity)
        entity.branch_id = None
