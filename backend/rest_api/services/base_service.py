"""
Base Service Classes for the tenant directory.

Provides a generic CRUD service for restaurant-scoped entities that:
- Scopes every query by restaurant
- Uses the output schema for DTO transformation
- Soft deletes through AuditMixin
- Exposes validation hooks for business rules

Usage:
    from rest_api.services.base_service import BaseCRUDService

    class TableService(BaseCRUDService[Table, TableOutput]):
        def __init__(self, db: Session):
            super().__init__(db=db, model=Table, output_schema=TableOutput, entity_name="Table")

        def _validate_delete(self, entity: Table) -> None:
            ...
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar, Type

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.models import Base
from shared.infrastructure.db import safe_commit
from shared.config.logging import tenant_logger as logger
from shared.utils.exceptions import NotFoundError, DatabaseError

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseCRUDService(Generic[ModelT, OutputT]):
    """
    Base service for restaurant-scoped entities with CRUD operations.

    Authorization happens in the caller; this layer only enforces tenant
    isolation and the entity's business rules.
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
    ):
        self._db = db
        self._model = model
        self._output_schema = output_schema
        self._entity_name = entity_name

    @property
    def db(self) -> Session:
        """Database session."""
        return self._db

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def _scoped(self, restaurant_id: int, include_inactive: bool = False) -> Select:
        query = select(self._model).where(self._model.restaurant_id == restaurant_id)
        if not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return query

    def get_entity(
        self,
        entity_id: int,
        restaurant_id: int,
        *,
        include_inactive: bool = False,
    ) -> ModelT | None:
        """Get raw entity (for internal use)."""
        return self._db.scalar(
            self._scoped(restaurant_id, include_inactive).where(self._model.id == entity_id)
        )

    def require_entity(self, entity_id: int, restaurant_id: int) -> ModelT:
        """
        Raises:
            NotFoundError: If the entity does not exist in this restaurant.
        """
        entity = self.get_entity(entity_id, restaurant_id)
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id, restaurant_id=restaurant_id)
        return entity

    def get_by_id(self, entity_id: int, restaurant_id: int) -> OutputT:
        return self.to_output(self.require_entity(entity_id, restaurant_id))

    def list_all(
        self,
        restaurant_id: int,
        *,
        branch_id: int | None = None,
        order_by: Any | None = None,
    ) -> list[OutputT]:
        """List live entities of a restaurant, optionally of one branch."""
        query = self._scoped(restaurant_id)
        if branch_id is not None:
            query = query.where(self._model.branch_id == branch_id)
        query = query.order_by(order_by if order_by is not None else self._model.id)
        return self.to_outputs(self._db.scalars(query).all())

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(
        self,
        data: dict[str, Any],
        restaurant_id: int,
        user_id: int | None,
        user_email: str | None,
    ) -> OutputT:
        """
        Create new entity.

        Raises:
            ValidationError: If data is invalid.
            DatabaseError: If creation fails.
        """
        data = {**data, "restaurant_id": restaurant_id}
        self._validate_create(data, restaurant_id)

        entity = self._model(**data)
        entity.set_created_by(user_id, user_email)
        self._db.add(entity)
        self._commit("create", restaurant_id=restaurant_id)
        self._db.refresh(entity)

        logger.info(f"{self._entity_name} created", entity_id=entity.id, restaurant_id=restaurant_id, user_id=user_id)
        return self.to_output(entity)

    def update(
        self,
        entity_id: int,
        data: dict[str, Any],
        restaurant_id: int,
        user_id: int | None,
        user_email: str | None,
    ) -> OutputT:
        """
        Update existing entity with the given (already filtered) fields.

        Raises:
            NotFoundError: If entity not found.
            ValidationError: If data is invalid.
        """
        entity = self.require_entity(entity_id, restaurant_id)
        self._validate_update(entity, data)

        for field_name, value in data.items():
            if hasattr(entity, field_name):
                setattr(entity, field_name, value)

        entity.set_updated_by(user_id, user_email)
        self._commit("update", entity_id=entity_id)
        self._db.refresh(entity)

        logger.info(f"{self._entity_name} updated", entity_id=entity_id, fields=sorted(data), user_id=user_id)
        return self.to_output(entity)

    def delete(
        self,
        entity_id: int,
        restaurant_id: int,
        user_id: int | None,
        user_email: str | None,
    ) -> None:
        """
        Soft delete an entity.

        Raises:
            NotFoundError: If entity not found.
        """
        entity = self.require_entity(entity_id, restaurant_id)
        self._validate_delete(entity)

        entity.soft_delete(user_id, user_email)
        self._after_delete(entity)
        self._commit("delete", entity_id=entity_id)

        logger.info(f"{self._entity_name} deleted", entity_id=entity_id, user_id=user_id)

    def _commit(self, operation: str, **context: Any) -> None:
        try:
            safe_commit(self._db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation} {self._entity_name}", error=str(e), **context)
            raise DatabaseError(f"{operation} {self._entity_name.lower()}")

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        """
        Convert entity to output DTO.

        Override this method for custom transformation logic.
        """
        return self._output_schema.model_validate(entity)

    def to_outputs(self, entities: Sequence[ModelT]) -> list[OutputT]:
        return [self.to_output(e) for e in entities]

    # =========================================================================
    # Validation Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], restaurant_id: int) -> None:
        """
        Validate data before create.

        Raises:
            ValidationError: If validation fails.
        """

    def _validate_update(self, entity: ModelT, data: dict[str, Any]) -> None:
        """Validate data before update."""

    def _validate_delete(self, entity: ModelT) -> None:
        """
        Validate entity can be deleted.

        Raises:
            ConflictError: If the entity still has dependents.
        """

    def _after_delete(self, entity: ModelT) -> None:
        """Hook run in the delete transaction, before commit."""
