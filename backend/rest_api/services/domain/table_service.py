"""
Table Service.

Business rules:
- Table numbers are unique within a branch
- A table with an active session cannot be deleted
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Branch, DiningSession, Table
from rest_api.services.base_service import BaseCRUDService
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, TableInUseError
from shared.utils.schemas import TableOutput


class TableService(BaseCRUDService[Table, TableOutput]):
    """
    Service for table management.
    """

    def __init__(self, db: Session):
        super().__init__(db=db, model=Table, output_schema=TableOutput, entity_name="Table")

    def list_all(
        self,
        restaurant_id: int,
        *,
        branch_id: int | None = None,
        order_by: Any | None = None,
    ) -> list[TableOutput]:
        return super().list_all(restaurant_id, branch_id=branch_id, order_by=Table.table_number)

    def _number_taken(self, branch_id: int, table_number: int, exclude_id: int | None = None) -> bool:
        query = select(Table.id).where(
            Table.branch_id == branch_id,
            Table.table_number == table_number,
            Table.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(Table.id != exclude_id)
        return self._db.scalar(query) is not None

    def _validate_create(self, data: dict[str, Any], restaurant_id: int) -> None:
        branch_exists = self._db.scalar(
            select(Branch.id).where(
                Branch.id == data["branch_id"],
                Branch.restaurant_id == restaurant_id,
                Branch.is_active.is_(True),
            )
        )
        if not branch_exists:
            raise NotFoundError("Branch", data["branch_id"])
        if self._number_taken(data["branch_id"], data["table_number"]):
            raise DuplicateEntityError("Table", str(data["table_number"]))

    def _validate_update(self, entity: Table, data: dict[str, Any]) -> None:
        number = data.get("table_number")
        if number is not None and self._number_taken(entity.branch_id, number, exclude_id=entity.id):
            raise DuplicateEntityError("Table", str(number))

    def _validate_delete(self, entity: Table) -> None:
        active_session_id = self._db.scalar(
            select(DiningSession.id).where(
                DiningSession.table_id == entity.id,
                DiningSession.is_active.is_(True),
            )
        )
        if active_session_id is not None:
            raise TableInUseError(entity.id, active_session_id)
