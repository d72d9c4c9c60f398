"""
Order Models: Order, OrderItem, OrderLog.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .table import DiningSession
    from .catalog import MenuItem
    from .billing import Payment


class Order(TimestampMixin, Base):
    """
    An order placed within a dining session.

    ``version`` is the optimistic-concurrency counter: SQLAlchemy issues
    ``UPDATE ... WHERE version = :loaded`` and bumps it on every flush, so a
    stale writer gets a StaleDataError instead of overwriting.
    ``total_amount_cents`` is derived from the items and never edited directly.
    """

    # "order" is a reserved SQL keyword
    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    branch_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("branch.id"), nullable=False, index=True
    )
    session_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dining_session.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default="ORDERED")
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_order_branch_status", "branch_id", "status"),
        CheckConstraint("total_amount_cents >= 0", name="chk_order_total_non_negative"),
    )

    # Relationships
    session: Mapped["DiningSession"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id", cascade="all, delete-orphan"
    )
    logs: Mapped[list["OrderLog"]] = relationship(
        back_populates="order", order_by="OrderLog.id"
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="order", order_by="Payment.id"
    )

    def recompute_total(self) -> int:
        """Recompute ``total_amount_cents`` from the item snapshots."""
        self.total_amount_cents = sum(item.unit_price_cents * item.quantity for item in self.items)
        return self.total_amount_cents

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, session_id={self.session_id}, status='{self.status}', version={self.version})>"


class OrderItem(Base):
    """
    A line of an order.
    Name and price are snapshotted at order time so later menu edits never
    alter historical orders.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
    )

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem"] = relationship()

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, menu_item_id={self.menu_item_id}, qty={self.quantity})>"


class OrderLog(Base):
    """
    Append-only audit trail of an order: one row per accepted transition.
    Rows are never updated or deleted.
    """

    __tablename__ = "order_log"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False)
    acting_user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="logs")

    def __repr__(self) -> str:
        return f"<OrderLog(id={self.id}, order_id={self.order_id}, status='{self.status}')>"


@event.listens_for(OrderLog, "before_update")
def _order_log_is_immutable(mapper, connection, target: OrderLog) -> None:
    raise ValueError(f"OrderLog entries are append-only (id={target.id})")


@event.listens_for(OrderLog, "before_delete")
def _order_log_is_undeletable(mapper, connection, target: OrderLog) -> None:
    raise ValueError(f"OrderLog entries cannot be deleted (id={target.id})")
