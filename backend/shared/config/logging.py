"""
Structured logging for the backend.

Loggers returned by get_logger accept keyword fields:

    logger.info("Order transitioned", order_id=7, to_status="SERVED")

Fields and the request correlation id end up in every record. Production
renders one JSON object per line; everything else renders readable text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


class StructuredLogger(logging.Logger):
    """Logger whose level methods take arbitrary keyword fields."""

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **fields: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["fields"] = fields
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "fields", None) or {}


def _record_request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    return request_id if request_id and request_id != "-" else None


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        request_id = _record_request_id(record)
        if request_id:
            payload["request_id"] = request_id
        payload.update(_record_fields(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["at"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for local runs."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{color}{clock} {record.levelname:<8}{self.RESET}"]

        request_id = _record_request_id(record)
        if request_id:
            parts.append(f"[{request_id[:8]}]")
        parts.append(f"{record.name}: {record.getMessage()}")

        fields = _record_fields(record)
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> None:
    """Install the root handler. Safe to call more than once."""
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(JsonFormatter() if settings.environment == "production" else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy, noisy_level in (
        ("uvicorn.access", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
        ("httpx", logging.WARNING),
    ):
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    """
    Usage:
        logger = get_logger(__name__)
        logger.warning("Invalid credentials", email=mask_email(email))
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """"waiter@example.com" -> "wa***@example.com"."""
    if not email or "@" not in email:
        return "<no-email>" if not email else "***@invalid"
    local, domain = email.split("@", 1)
    return f"{local[:2] if len(local) > 2 else local[:1]}***@{domain}"


def mask_jti(jti: str | None) -> str:
    if not jti:
        return "<no-jti>"
    return jti if len(jti) <= 8 else f"{jti[:8]}..."


rest_api_logger = get_logger("rest_api")
auth_logger = get_logger("rest_api.auth")
order_logger = get_logger("rest_api.orders")
session_logger = get_logger("rest_api.sessions")
payment_logger = get_logger("rest_api.payments")
tenant_logger = get_logger("rest_api.tenants")

# Authentication and authorization outcomes, kept apart for auditing
security_audit_logger = get_logger("security.audit")


def audit_auth_event(
    event_type: str,
    user_id: int | str | None = None,
    email: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """
    Record an authentication event (LOGIN, LOGOUT, DEVICE_TOKEN, ...).

    Failures are logged at WARNING, successes at INFO. The email is masked.
    """
    security_audit_logger.log(
        logging.INFO if success else logging.WARNING,
        "auth %s %s",
        event_type,
        "ok" if success else "failed",
        event_type=event_type,
        user_id=user_id,
        email=mask_email(email) if email else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )


def audit_authorization_denied(
    principal_id: int | str | None,
    role: str,
    resource: str,
    verb: str,
    reason: str,
    **extra: Any,
) -> None:
    """Log a policy denial with the acting principal and the refused action."""
    security_audit_logger.warning(
        "authorization denied",
        principal_id=principal_id,
        role=role,
        resource=resource,
        verb=verb,
        reason=reason,
        **extra,
    )
