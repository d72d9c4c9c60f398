"""
Staff accounts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .tenant import Restaurant, Branch


class User(AuditMixin, Base):
    """
    A staff member (superadmin, admin, kitchen, waiter).
    Customers are anonymous and never stored here.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/email from AuditMixin.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    # Null for superadmins and unassigned admins
    branch_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=True, index=True
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash
    display_name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, nullable=False)  # SUPERADMIN, ADMIN, KITCHEN, WAITER
    permissions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        Index("ix_user_branch_role", "branch_id", "role"),
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(back_populates="users")
    branch: Mapped[Optional["Branch"]] = relationship(back_populates="staff")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
