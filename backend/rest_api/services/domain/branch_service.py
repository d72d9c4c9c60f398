"""
Branch Service.

Business rules:
- A branch belongs to exactly one restaurant
- At most one admin is assigned; reassignment overwrites the previous one
- Only empty branches can be deleted: no active sessions, no staff
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import Branch, DiningSession, User
from rest_api.services.base_service import BaseCRUDService
from shared.config.constants import Roles
from shared.config.logging import tenant_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import BranchNotEmptyError, NotFoundError, ValidationError
from shared.utils.schemas import BranchOutput


class BranchService(BaseCRUDService[Branch, BranchOutput]):
    """
    Service for branch management.
    """

    def __init__(self, db: Session):
        super().__init__(db=db, model=Branch, output_schema=BranchOutput, entity_name="Branch")

    def list_all(self, restaurant_id: int, **kwargs) -> list[BranchOutput]:
        query = self._scoped(restaurant_id).order_by(Branch.name, Branch.id)
        return self.to_outputs(self._db.scalars(query).all())

    def occupancy(self, branch: Branch) -> tuple[int, int]:
        """(active sessions, assigned staff) of a branch."""
        active_sessions = self._db.scalar(
            select(func.count(DiningSession.id)).where(
                DiningSession.branch_id == branch.id,
                DiningSession.is_active.is_(True),
            )
        )
        staff_ids = set(self._db.scalars(
            select(User.id).where(User.branch_id == branch.id, User.is_active.is_(True))
        ).all())
        if branch.admin_user_id is not None:
            staff_ids.add(branch.admin_user_id)
        return active_sessions, len(staff_ids)

    def _validate_delete(self, entity: Branch) -> None:
        active_sessions, assigned_staff = self.occupancy(entity)
        if active_sessions or assigned_staff:
            raise BranchNotEmptyError(entity.id, active_sessions, assigned_staff)

    def assign_admin(
        self,
        branch_id: int,
        restaurant_id: int,
        admin_user_id: int,
        user_id: int | None = None,
        user_email: str | None = None,
    ) -> BranchOutput:
        """
        Make ``admin_user_id`` the branch's admin.

        The previous admin, if any, is left unassigned.

        Raises:
            NotFoundError: Unknown branch or user in this restaurant.
            ValidationError: The user is not an ADMIN.
        """
        branch = self.require_entity(branch_id, restaurant_id)
        admin = self._db.scalar(
            select(User).where(
                User.id == admin_user_id,
                User.restaurant_id == restaurant_id,
                User.is_active.is_(True),
            )
        )
        if not admin:
            raise NotFoundError("Staff", admin_user_id)
        if admin.role != Roles.ADMIN:
            raise ValidationError("Only ADMIN users can be assigned to a branch", role=admin.role)

        previous_id = branch.admin_user_id
        if previous_id is not None and previous_id != admin.id:
            previous = self._db.get(User, previous_id)
            if previous is not None and previous.branch_id == branch.id:
                previous.branch_id = None

        if admin.branch_id is not None and admin.branch_id != branch.id:
            other = self._db.get(Branch, admin.branch_id)
            if other is not None and other.admin_user_id == admin.id:
                other.admin_user_id = None

        branch.admin_user_id = admin.id
        admin.branch_id = branch.id
        branch.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(branch)

        logger.info(
            "Branch admin assigned",
            branch_id=branch_id,
            admin_user_id=admin_user_id,
            previous_admin_id=previous_id,
            user_id=user_id,
        )
        return self.to_output(branch)
