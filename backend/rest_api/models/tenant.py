"""
Multi-Tenancy Models: Restaurant and Branch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .user import User
    from .table import Table
    from .catalog import MenuItem


class Restaurant(AuditMixin, Base):
    """
    Root of tenant scope. Owns branches, staff and the menu catalog.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/email from AuditMixin.
    """

    __tablename__ = "restaurant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # No FK: app_user references restaurant, a FK here would create a cycle
    owner_super_admin_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    timezone: Mapped[str] = mapped_column(Text, default="UTC", nullable=False)
    currency: Mapped[str] = mapped_column(Text, default="USD", nullable=False)

    # Relationships
    branches: Mapped[list["Branch"]] = relationship(back_populates="restaurant")
    users: Mapped[list["User"]] = relationship(back_populates="restaurant")
    menu_items: Mapped[list["MenuItem"]] = relationship(back_populates="restaurant")

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name='{self.name}')>"


class Branch(AuditMixin, Base):
    """
    A physical location of a restaurant.
    At most one admin is assigned at a time; reassignment overwrites.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/email from AuditMixin.
    """

    __tablename__ = "branch"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # No FK: app_user.branch_id references branch
    admin_user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_branch_restaurant_active", "restaurant_id", "is_active"),
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(back_populates="branches")
    tables: Mapped[list["Table"]] = relationship(back_populates="branch")
    staff: Mapped[list["User"]] = relationship(back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, restaurant_id={self.restaurant_id}, name='{self.name}')>"
