"""
Authentication utilities.
Handles JWTs for staff and table tokens for customers, and turns either into
a resolved Principal for the request.

Staff send ``Authorization: Bearer <jwt>``; customers bound to a table send
``X-Table-Token: <jwt>`` (signed with a separate secret and audience).
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any

import jwt
from fastapi import Header

from shared.config.constants import Roles
from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    TABLE_TOKEN_SECRET,
    settings,
)
from shared.config.logging import get_logger, mask_jti
from shared.security.claims import InvalidCredentialsResponse, Principal, resolve_principal
from shared.utils.exceptions import InvalidCredentialsResponseError, UnauthorizedError

logger = get_logger(__name__)


STAFF_TOKEN_TYPES = frozenset({"access", "device"})


# =============================================================================
# JWT Functions (for staff authentication)
# =============================================================================


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = "access",
) -> str:
    """
    Sign a staff JWT with the given payload.

    Every token carries a unique ``jti`` so it can be revoked individually.

    Args:
        payload: Claims to include (sub, role, restaurantId, branchId, email, permissions).
        ttl_seconds: Token lifetime in seconds. Defaults to the access/device expiry.
        token_type: "access" (interactive login) or "device" (issued to a handheld).
    """
    if ttl_seconds is None:
        if token_type == "device":
            ttl_seconds = settings.jwt_device_token_expire_hours * 60 * 60
        else:
            ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def staff_claims(user: Any) -> dict[str, Any]:
    """Claims describing a staff user, as embedded in their tokens."""
    return {
        "sub": str(user.id),
        "role": user.role,
        "restaurantId": user.restaurant_id,
        "branchId": user.branch_id,
        "email": user.email,
        "permissions": list(user.permissions or []),
    }


def verify_jwt(token: str, check_blacklist: bool = True) -> dict[str, Any]:
    """
    Verify and decode a staff JWT.

    Raises:
        UnauthorizedError: If token is invalid, expired, of the wrong type or revoked.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError("Invalid token")

    if "sub" not in payload:
        raise UnauthorizedError("Invalid token: missing subject claim")

    if payload.get("type") not in STAFF_TOKEN_TYPES:
        raise UnauthorizedError("Invalid token: invalid type claim")

    if check_blacklist and settings.token_blacklist_enabled:
        _check_token_blacklist(payload)

    return payload


def _check_token_blacklist(payload: dict[str, Any]) -> None:
    """
    Reject revoked tokens.

    The blacklist lookup fails closed: an unreachable Redis is reported as revoked.
    """
    from shared.security.token_blacklist import is_token_blacklisted

    token_jti = payload.get("jti")
    if not token_jti:
        return

    if is_token_blacklisted(token_jti):
        logger.warning("Revoked token used", jti=mask_jti(token_jti), user_id=payload.get("sub"))
        raise UnauthorizedError("Token has been revoked")


def revoke_jwt(payload: dict[str, Any]) -> bool:
    """Blacklist a verified token until its natural expiry."""
    from shared.security.token_blacklist import blacklist_token

    token_jti = payload.get("jti")
    exp = payload.get("exp")
    if not token_jti or not exp:
        return False
    return blacklist_token(token_jti, datetime.fromtimestamp(exp, tz=timezone.utc))


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        UnauthorizedError: If header is missing or malformed.
    """
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


# =============================================================================
# Table Token Functions (for customer authentication)
# =============================================================================


TABLE_TOKEN_ISSUER = "tableflow:table"
TABLE_TOKEN_AUDIENCE = "tableflow:customer"


def sign_table_token(
    restaurant_id: int,
    branch_id: int,
    table_id: int,
    session_id: int,
    is_owner: bool = False,
    ttl_seconds: int | None = None,
) -> str:
    """
    Create a JWT binding a customer to a dining session.

    Args:
        restaurant_id: Restaurant the table belongs to.
        branch_id: Branch the table belongs to.
        table_id: Table ID.
        session_id: Active dining session ID.
        is_owner: True for the customer who started the session.
        ttl_seconds: Token lifetime in seconds. Defaults to settings value.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.table_token_expire_hours * 60 * 60
    now = int(time.time())
    payload = {
        "sub": f"table:{table_id}:{uuid.uuid4().hex[:12]}",
        "role": Roles.CUSTOMER,
        "restaurantId": restaurant_id,
        "branchId": branch_id,
        "tableId": table_id,
        "sessionId": session_id,
        "isOwner": is_owner,
        "type": "table",
        "iss": TABLE_TOKEN_ISSUER,
        "aud": TABLE_TOKEN_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(payload, TABLE_TOKEN_SECRET, algorithm="HS256")


def verify_table_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a table token.

    Raises:
        UnauthorizedError: If token is invalid, expired or not a table token.
    """
    try:
        payload = jwt.decode(
            token,
            TABLE_TOKEN_SECRET,
            algorithms=["HS256"],
            audience=TABLE_TOKEN_AUDIENCE,
            issuer=TABLE_TOKEN_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Table token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Table token validation failed", error=str(e))
        raise UnauthorizedError("Invalid table token")

    if payload.get("type") != "table" or payload.get("role") != Roles.CUSTOMER:
        raise UnauthorizedError("Invalid token type")

    return payload


# =============================================================================
# Request principal
# =============================================================================


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """Resolve verified claims into a Principal, mapping failures to 401."""
    try:
        return resolve_principal(claims=claims)
    except InvalidCredentialsResponse as e:
        raise InvalidCredentialsResponseError(str(e))


def current_principal(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_table_token: str | None = Header(default=None, alias="X-Table-Token"),
) -> Principal:
    """
    FastAPI dependency resolving the caller into a Principal.

    Usage:
        @router.get("/orders/{order_id}")
        def get_order(order_id: int, principal: Principal = Depends(current_principal)):
            ...
    """
    if authorization:
        claims = verify_jwt(get_bearer_token(authorization))
    elif x_table_token:
        claims = verify_table_token(x_table_token)
    else:
        raise UnauthorizedError("Missing Authorization header")
    return principal_from_claims(claims)


def optional_principal(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_table_token: str | None = Header(default=None, alias="X-Table-Token"),
) -> Principal | None:
    """Like current_principal, but anonymous callers get None instead of a 401."""
    if not authorization and not x_table_token:
        return None
    return current_principal(authorization=authorization, x_table_token=x_table_token)
