"""
Centralized HTTP exceptions for consistent error handling.

Every exception carries a stable machine-readable ``code`` and renders as:

    {"detail": {"code": "VersionConflict", "message": "...", ...context}}

State-conflict errors include the current state in their context so the
caller can decide whether to re-fetch and retry.

Usage:
    from shared.utils.exceptions import NotFoundError, VersionConflictError

    raise NotFoundError("Branch", branch_id)
    raise VersionConflictError(order_id, expected_version=2, current_version=3)
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    code: str = "AppError"

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, code=self.code, **context)

        self.message = detail
        self.context = {k: v for k, v in context.items() if v is not None}
        body = {"code": self.code, "message": detail, **self.context}
        super().__init__(status_code=status_code, detail=body, headers=headers)


# =============================================================================
# 401 Unauthorized Errors
# =============================================================================


class UnauthorizedError(AppException):
    """Missing, invalid, expired or revoked credentials (401)."""

    code = "Unauthorized"

    def __init__(self, detail: str = "Not authenticated", **context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
            **context,
        )


class InvalidCredentialsResponseError(UnauthorizedError):
    """Credentials could not be resolved into a principal."""

    code = "InvalidCredentialsResponse"

    def __init__(self, reason: str, **context: Any):
        super().__init__(f"Invalid credentials: {reason}", reason=reason, **context)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Table", 123)
    """

    code = "NotFound"

    def __init__(self, entity: str, entity_id: int | str | None = None, **context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **context,
        )


class SessionNotFoundError(NotFoundError):
    """Dining session not found."""

    code = "SessionNotFound"

    def __init__(self, session_id: int | None = None, **context: Any):
        super().__init__("Session", session_id, **context)


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    code = "OrderNotFound"

    def __init__(self, order_id: int | None = None, **context: Any):
        super().__init__("Order", order_id, **context)


class TableNotFoundError(NotFoundError):
    """Table not found."""

    code = "TableNotFound"

    def __init__(self, table_id: int | None = None, **context: Any):
        super().__init__("Table", table_id, **context)


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("delete branches")
    """

    code = "Forbidden"

    def __init__(self, action: str | None = None, **context: Any):
        if action:
            detail = f"Not authorized to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            action=action,
            **context,
        )


class AuthorizationDeniedError(ForbiddenError):
    """The authorization policy refused the action; ``reason`` is the policy's deny reason."""

    code = "AuthorizationDenied"

    def __init__(self, reason: str, **context: Any):
        self.reason = reason
        AppException.__init__(
            self,
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Authorization denied: {reason}",
            reason=reason,
            **context,
        )


class LoginRoleDeniedError(ForbiddenError):
    """The resolved role is not allowed an interactive login."""

    code = "LoginRoleDenied"

    def __init__(self, role: str, **context: Any):
        super().__init__("sign in with this role", role=role, **context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Price must be positive", field="price_cents")
    """

    code = "ValidationError"

    def __init__(self, detail: str, **context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **context,
        )


class EmptyOrderError(ValidationError):
    """An order must contain at least one item."""

    code = "EmptyOrder"

    def __init__(self, **context: Any):
        super().__init__("Order must contain at least one item", **context)


class ItemUnavailableError(ValidationError):
    """One or more referenced menu items cannot be ordered."""

    code = "ItemUnavailable"

    def __init__(self, menu_item_ids: list[int], **context: Any):
        ids = ", ".join(str(i) for i in menu_item_ids)
        super().__init__(
            f"Menu items not available: {ids}",
            menu_item_ids=menu_item_ids,
            **context,
        )


class PaymentAmountError(ValidationError):
    """Payment amount validation error."""

    code = "InvalidPaymentAmount"

    def __init__(self, amount: int, reason: str, **context: Any):
        super().__init__(f"Invalid payment amount ({amount}): {reason}", amount=amount, **context)


class DuplicateEntityError(ValidationError):
    """Entity already exists."""

    code = "DuplicateEntity"

    def __init__(self, entity: str, identifier: str | None = None, **context: Any):
        if identifier:
            detail = f"{entity} with identifier '{identifier}' already exists"
        else:
            detail = f"{entity} already exists"

        super().__init__(detail, entity=entity, identifier=identifier, **context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Table has an active session", table_id=5)
    """

    code = "Conflict"

    def __init__(self, detail: str, **context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **context,
        )


class IllegalTransitionError(ConflictError):
    """Target status is not reachable from the current status."""

    code = "IllegalTransition"

    def __init__(self, order_id: int, current_status: str, target_status: str, allowed: list[str], **context: Any):
        super().__init__(
            f"Order {order_id} cannot move from '{current_status}' to '{target_status}'",
            order_id=order_id,
            current_status=current_status,
            target_status=target_status,
            allowed=allowed,
            **context,
        )


class VersionConflictError(ConflictError):
    """The caller's view of the order is stale; re-fetch and retry."""

    code = "VersionConflict"

    def __init__(
        self,
        order_id: int,
        expected_version: int,
        current_version: int | None,
        current_status: str | None = None,
        **context: Any,
    ):
        super().__init__(
            f"Order {order_id} was modified concurrently (expected version {expected_version})",
            order_id=order_id,
            expected_version=expected_version,
            current_version=current_version,
            current_status=current_status,
            **context,
        )


class PaymentIncompleteError(ConflictError):
    """Completed payments do not cover the order total."""

    code = "PaymentIncomplete"

    def __init__(self, order_id: int, paid_cents: int, total_cents: int, **context: Any):
        super().__init__(
            f"Order {order_id} is not fully paid ({paid_cents}/{total_cents})",
            order_id=order_id,
            paid_cents=paid_cents,
            total_cents=total_cents,
            **context,
        )


class OverpaymentRejectedError(ConflictError):
    """Recording the payment would exceed the order total."""

    code = "OverpaymentRejected"

    def __init__(self, order_id: int, paid_cents: int, amount_cents: int, total_cents: int, **context: Any):
        super().__init__(
            f"Payment of {amount_cents} exceeds the outstanding balance of order {order_id}",
            order_id=order_id,
            paid_cents=paid_cents,
            amount_cents=amount_cents,
            total_cents=total_cents,
            **context,
        )


class TableInactiveError(ConflictError):
    """The table is out of service and cannot start sessions."""

    code = "TableInactive"

    def __init__(self, table_id: int, **context: Any):
        super().__init__(f"Table {table_id} is not active", table_id=table_id, **context)


class TableInUseError(ConflictError):
    """The table has an active session."""

    code = "TableInUse"

    def __init__(self, table_id: int, session_id: int, **context: Any):
        super().__init__(
            f"Table {table_id} has an active session",
            table_id=table_id,
            session_id=session_id,
            **context,
        )


class SessionAlreadyActiveError(ConflictError):
    """Another active session already holds the table."""

    code = "SessionAlreadyActive"

    def __init__(self, table_id: int, session_id: int | None = None, **context: Any):
        super().__init__(
            f"Table {table_id} already has an active session",
            table_id=table_id,
            session_id=session_id,
            **context,
        )


class SessionAlreadyEndedError(ConflictError):
    """The session was ended before this call."""

    code = "SessionAlreadyEnded"

    def __init__(self, session_id: int, ended_at: Any = None, **context: Any):
        super().__init__(
            f"Session {session_id} has already ended",
            session_id=session_id,
            ended_at=ended_at.isoformat() if ended_at is not None else None,
            **context,
        )


class SessionNotActiveError(ConflictError):
    """Orders can only be placed against an active session."""

    code = "SessionNotActive"

    def __init__(self, session_id: int, **context: Any):
        super().__init__(f"Session {session_id} is not active", session_id=session_id, **context)


class SessionHasOpenOrdersError(ConflictError):
    """The session still has orders that are not COMPLETED or CANCELLED."""

    code = "SessionHasOpenOrders"

    def __init__(self, session_id: int, open_order_ids: list[int], **context: Any):
        super().__init__(
            f"Session {session_id} has open orders",
            session_id=session_id,
            open_order_ids=open_order_ids,
            **context,
        )


class BranchNotEmptyError(ConflictError):
    """A branch can only be deleted once sessions are closed and staff reassigned."""

    code = "BranchNotEmpty"

    def __init__(self, branch_id: int, active_sessions: int, assigned_staff: int, **context: Any):
        super().__init__(
            f"Branch {branch_id} still has active sessions or assigned staff",
            branch_id=branch_id,
            active_sessions=active_sessions,
            assigned_staff=assigned_staff,
            **context,
        )


class InvalidStateError(ConflictError):
    """Entity is in an invalid state for the operation."""

    code = "InvalidState"

    def __init__(self, entity: str, current_state: str, expected_states: list[str] | None = None, **context: Any):
        if expected_states:
            states_str = ", ".join(expected_states)
            detail = f"{entity} is in state '{current_state}', expected: {states_str}"
        else:
            detail = f"{entity} cannot be in state '{current_state}' for this operation"

        super().__init__(detail, entity=entity, current_state=current_state, **context)


# =============================================================================
# 429 Too Many Requests
# =============================================================================


class RateLimitError(AppException):
    """Request rate exceeded (429)."""

    code = "RateLimited"

    def __init__(self, limit: str, retry_after: int = 60, **context: Any):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
            limit=limit,
            **context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to record payment", payment_id=123)
    """

    code = "InternalError"

    def __init__(self, detail: str = "Internal server error", **context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **context,
        )


class DatabaseError(InternalError):
    """Database operation failed."""

    code = "DatabaseError"

    def __init__(self, operation: str, **context: Any):
        super().__init__(
            f"Database error during {operation}. Please re-fetch and try again.",
            operation=operation,
            **context,
        )


class ServiceUnavailableError(AppException):
    """A backing service (Redis) is unavailable (503)."""

    code = "ServiceUnavailable"

    def __init__(self, service: str, retry_after: int | None = None, **context: Any):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service {service} temporarily unavailable",
            log_level="error",
            headers=headers,
            service=service,
            **context,
        )
