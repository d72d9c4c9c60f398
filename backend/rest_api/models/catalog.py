"""
Catalog Models: MenuItem, BranchMenuAvailability.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .tenant import Restaurant


class MenuItem(AuditMixin, Base):
    """
    Dish or drink offered by a restaurant.
    Price is restaurant-scoped. ``branch_id`` limits the item to one branch.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/email from AuditMixin.
    """

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    branch_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="General")
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_menu_item_price_non_negative"),
        Index("ix_menu_item_restaurant_category", "restaurant_id", "category"),
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(back_populates="menu_items")
    branch_availability: Mapped[list["BranchMenuAvailability"]] = relationship(
        back_populates="menu_item"
    )

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, name='{self.name}', price_cents={self.price_cents})>"


class BranchMenuAvailability(Base):
    """
    Branch-level availability override for a menu item.
    Absent row means the item's own ``is_available`` applies.
    """

    __tablename__ = "branch_menu_availability"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    branch_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (
        UniqueConstraint("branch_id", "menu_item_id", name="uq_branch_menu_item"),
    )

    menu_item: Mapped["MenuItem"] = relationship(back_populates="branch_availability")

    def __repr__(self) -> str:
        return (
            f"<BranchMenuAvailability(branch_id={self.branch_id}, "
            f"menu_item_id={self.menu_item_id}, is_available={self.is_available})>"
        )
