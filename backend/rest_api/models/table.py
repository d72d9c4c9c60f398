"""
Table and Session Models: Table, DiningSession.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .tenant import Branch
    from .order import Order


class Table(AuditMixin, Base):
    """
    Physical seating unit in a branch.
    ``active=False`` takes the table out of service: it cannot start sessions.
    Inherits: is_active (soft delete), created_at, updated_at, *_by_id/email from AuditMixin.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    branch_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=False, index=True
    )
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_count: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_table_branch_number", "branch_id", "table_number"),
    )

    # Relationships
    branch: Mapped["Branch"] = relationship(back_populates="tables")
    sessions: Mapped[list["DiningSession"]] = relationship(back_populates="table")

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, branch_id={self.branch_id}, number={self.table_number})>"


class DiningSession(TimestampMixin, Base):
    """
    The binding of one table to one ongoing customer visit.

    At most one active session per table; the partial unique index makes the
    store reject a second concurrent one.
    """

    __tablename__ = "dining_session"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    branch_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=False, index=True
    )
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    ended_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index(
            "uq_dining_session_active_table",
            "table_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("ix_dining_session_branch_active", "branch_id", "is_active"),
    )

    # Relationships
    table: Mapped["Table"] = relationship(back_populates="sessions")
    orders: Mapped[list["Order"]] = relationship(back_populates="session", order_by="Order.id")

    def __repr__(self) -> str:
        state = "active" if self.is_active else "ended"
        return f"<DiningSession(id={self.id}, table_id={self.table_id}, {state})>"
