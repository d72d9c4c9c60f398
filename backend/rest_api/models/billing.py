"""
Billing Models: Payment.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .order import Order


class Payment(TimestampMixin, Base):
    """
    A settlement record against an order.
    An order may have several partial payments; only COMPLETED ones count
    toward its total. Gateway details are an opaque reference.
    """

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(Text, nullable=False)  # CASH, CARD, ONLINE
    status: Mapped[str] = mapped_column(Text, nullable=False, default="PENDING")  # PENDING, COMPLETED, FAILED
    external_reference: Mapped[Optional[str]] = mapped_column(Text)
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="chk_payment_amount_positive"),
        Index("ix_payment_order_status", "order_id", "status"),
    )

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, order_id={self.order_id}, amount={self.amount_cents}, status={self.status})>"
