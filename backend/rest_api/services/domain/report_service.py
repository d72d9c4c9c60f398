"""
Report Service - branch operational summary.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import DiningSession, Order, Payment
from shared.config.constants import OrderStatus, PaymentStatus
from shared.utils.schemas import BranchReport


class ReportService:
    def __init__(self, db: Session):
        self._db = db

    def branch_report(self, branch_id: int) -> BranchReport:
        """
        Orders, revenue and live sessions of a branch.

        Revenue is the sum of COMPLETED payments; the average order value is
        taken over non-cancelled orders.
        """
        by_status = dict.fromkeys(OrderStatus.ALL, 0)
        rows = self._db.execute(
            select(Order.status, func.count(Order.id))
            .where(Order.branch_id == branch_id)
            .group_by(Order.status)
        ).all()
        for status, count in rows:
            by_status[status] = count

        revenue = self._db.scalar(
            select(func.coalesce(func.sum(Payment.amount_cents), 0))
            .join(Order, Order.id == Payment.order_id)
            .where(Order.branch_id == branch_id, Payment.status == PaymentStatus.COMPLETED)
        )
        active_sessions = self._db.scalar(
            select(func.count(DiningSession.id)).where(
                DiningSession.branch_id == branch_id,
                DiningSession.is_active.is_(True),
            )
        )
        billable_count, billable_total = self._db.execute(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount_cents), 0))
            .where(Order.branch_id == branch_id, Order.status != OrderStatus.CANCELLED)
        ).one()

        return BranchReport(
            branch_id=branch_id,
            total_orders=sum(by_status.values()),
            total_revenue_cents=revenue,
            active_sessions=active_sessions,
            average_order_value_cents=billable_total // billable_count if billable_count else 0,
            orders_by_status=by_status,
        )
