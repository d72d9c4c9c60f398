"""
Session Domain Service.

Maps a physical table to its ongoing dining session. At most one active
session per table: the partial unique index on ``dining_session.table_id``
makes the store reject a concurrent second start, so there is no
check-then-create window in this code.
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.config.constants import OrderStatus
from shared.config.logging import session_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    SessionAlreadyActiveError,
    SessionAlreadyEndedError,
    SessionHasOpenOrdersError,
    SessionNotFoundError,
    TableInactiveError,
    TableNotFoundError,
)
from rest_api.models import Branch, DiningSession, Order, Table


class SessionService:
    """
    Domain service for the session registry.
    """

    def __init__(self, db: Session):
        self._db = db

    def get_table(self, table_id: int) -> Table:
        """
        Raises:
            TableNotFoundError: Unknown or deleted table, or its branch was deleted.
        """
        table = self._db.scalar(
            select(Table)
            .join(Branch, Branch.id == Table.branch_id)
            .where(
                Table.id == table_id,
                Table.is_active.is_(True),
                Branch.is_active.is_(True),
            )
        )
        if not table:
            raise TableNotFoundError(table_id)
        return table

    def get_session(self, session_id: int, for_update: bool = False) -> DiningSession:
        """
        Args:
            for_update: Lock the session row until the transaction ends and
                reload it, so ending a session and placing an order on it
                serialize.

        Raises:
            SessionNotFoundError: If no session has this id.
        """
        query = select(DiningSession).where(DiningSession.id == session_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        session = self._db.scalar(query)
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    def get_active_session(self, table_id: int) -> DiningSession | None:
        """Return the table's active session, or None."""
        return self._db.scalar(
            select(DiningSession).where(
                DiningSession.table_id == table_id,
                DiningSession.is_active.is_(True),
            )
        )

    def list_active_sessions(self, branch_id: int) -> list[DiningSession]:
        return list(self._db.scalars(
            select(DiningSession)
            .where(
                DiningSession.branch_id == branch_id,
                DiningSession.is_active.is_(True),
            )
            .order_by(DiningSession.started_at, DiningSession.id)
        ).all())

    def start_session(
        self,
        table_id: int,
        acting_user_id: int | None = None,
        acting_user_email: str | None = None,
    ) -> DiningSession:
        """
        Open a new session on a table.

        Raises:
            TableNotFoundError: Unknown or deleted table.
            TableInactiveError: The table is out of service.
            SessionAlreadyActiveError: The table already has an active session.
        """
        table = self.get_table(table_id)
        if not table.active:
            raise TableInactiveError(table_id)

        session = DiningSession(
            restaurant_id=table.restaurant_id,
            branch_id=table.branch_id,
            table_id=table.id,
            is_active=True,
            started_at=datetime.now(timezone.utc),
        )
        session.set_created_by(acting_user_id, acting_user_email)
        self._db.add(session)

        try:
            self._db.flush()
        except IntegrityError:
            self._db.rollback()
            existing = self.get_active_session(table_id)
            raise SessionAlreadyActiveError(
                table_id,
                session_id=existing.id if existing else None,
            )

        safe_commit(self._db)
        self._db.refresh(session)

        logger.info(
            "Session started",
            session_id=session.id,
            table_id=table_id,
            branch_id=session.branch_id,
            user_id=acting_user_id,
        )
        return session

    def join_session(self, table_id: int) -> DiningSession:
        """
        Return the table's active session for a customer joining it.

        Raises:
            TableNotFoundError: Unknown or deleted table.
            SessionNotFoundError: The table has no active session to join.
        """
        self.get_table(table_id)
        session = self.get_active_session(table_id)
        if not session:
            raise SessionNotFoundError(table_id=table_id)
        return session

    def end_session(self, session_id: int, acting_user_id: int | None = None) -> DiningSession:
        """
        End a session.

        Ending is single-shot: the conditional UPDATE only matches while the
        session is active, so of two concurrent callers exactly one ends it
        and the other gets SessionAlreadyEndedError.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionAlreadyEndedError: The session was already ended.
            SessionHasOpenOrdersError: Some of its orders are not terminal yet.
        """
        session = self.get_session(session_id, for_update=True)
        if not session.is_active:
            raise SessionAlreadyEndedError(session_id, ended_at=session.ended_at)

        open_order_ids = list(self._db.scalars(
            select(Order.id)
            .where(
                Order.session_id == session_id,
                Order.status.not_in(OrderStatus.TERMINAL),
            )
            .order_by(Order.id)
        ).all())
        if open_order_ids:
            raise SessionHasOpenOrdersError(session_id, open_order_ids)

        ended_at = datetime.now(timezone.utc)
        result = self._db.execute(
            update(DiningSession)
            .where(
                DiningSession.id == session_id,
                DiningSession.is_active.is_(True),
            )
            .values(is_active=False, ended_at=ended_at, ended_by_id=acting_user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._db.rollback()
            raise SessionAlreadyEndedError(session_id)

        safe_commit(self._db)
        self._db.refresh(session)

        logger.info(
            "Session ended",
            session_id=session_id,
            table_id=session.table_id,
            user_id=acting_user_id,
        )
        return session
