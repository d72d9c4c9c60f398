"""
Authentication router.
Handles login, logout, the current principal and device tokens.
"""

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.config.constants import BRANCH_STAFF_ROLES, LOGIN_DENIED_ROLES
from shared.config.logging import auth_logger as logger, audit_auth_event, mask_email
from shared.config.settings import settings
from shared.security.auth import (
    get_bearer_token,
    revoke_jwt,
    sign_jwt,
    staff_claims,
    verify_jwt,
)
from shared.security.claims import InvalidCredentialsResponse, resolve_login_response
from shared.security.rate_limit import limiter, LOGIN_RATE_LIMIT
from shared.utils.exceptions import (
    InvalidCredentialsResponseError,
    LoginRoleDeniedError,
    UnauthorizedError,
    ValidationError,
)
from shared.utils.schemas import (
    DeviceTokenRequest,
    DeviceTokenResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    PrincipalOutput,
    UserInfo,
)
from rest_api.routers._common import permission_context
from rest_api.services.domain import StaffService
from rest_api.services.permissions import Action, PermissionContext, Resource, Verb


router = APIRouter(prefix="/api/auth", tags=["auth"])


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a staff member and return a bearer token.

    The issued response is resolved through the same claims resolver every
    client uses, so a role that cannot sign in interactively is refused
    here with 403 even though its credentials are valid.
    """
    user = StaffService(db).authenticate(body.email, body.password)
    if user is None:
        audit_auth_event(
            "LOGIN",
            email=body.email,
            success=False,
            reason="invalid_credentials",
            ip_address=_client_ip(request),
        )
        raise UnauthorizedError("Invalid email or password")

    user_info = UserInfo.model_validate(user)
    token = sign_jwt(staff_claims(user))

    try:
        token, principal = resolve_login_response({"token": token, "user": user_info.model_dump()})
    except InvalidCredentialsResponse as e:
        raise InvalidCredentialsResponseError(str(e), user_id=user.id)

    if principal.role in LOGIN_DENIED_ROLES:
        audit_auth_event(
            "LOGIN",
            user_id=user.id,
            email=user.email,
            success=False,
            reason="role_denied",
            ip_address=_client_ip(request),
        )
        raise LoginRoleDeniedError(principal.role, user_id=user.id)

    audit_auth_event("LOGIN", user_id=user.id, email=user.email, ip_address=_client_ip(request))
    return LoginResponse(
        token=token,
        user=user_info,
        landing_path=PermissionContext(principal).landing_path,
    )


@router.get("/me", response_model=MeResponse)
def me(ctx: PermissionContext = Depends(permission_context)) -> MeResponse:
    """Return the resolved principal and where its client should land."""
    return MeResponse(
        principal=PrincipalOutput(**ctx.principal.to_dict()),
        landing_path=ctx.landing_path,
        order_poll_interval_seconds=settings.order_poll_interval_seconds,
        session_poll_interval_seconds=settings.session_poll_interval_seconds,
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LogoutResponse:
    """
    Revoke the caller's token.

    Without a revocation store the token stays valid until it expires; the
    client is expected to discard it either way.
    """
    payload = verify_jwt(get_bearer_token(authorization))

    revoked = False
    if settings.token_blacklist_enabled:
        revoked = revoke_jwt(payload)

    audit_auth_event(
        "LOGOUT",
        user_id=payload.get("sub"),
        email=payload.get("email"),
        ip_address=_client_ip(request),
        revoked=revoked,
    )
    return LogoutResponse(
        success=True,
        message="Token revoked" if revoked else "Logged out",
    )


@router.post("/device-token", response_model=DeviceTokenResponse)
def issue_device_token(
    body: DeviceTokenRequest,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> DeviceTokenResponse:
    """
    Issue a long-lived token for a kitchen or waiter handheld.

    Waiters cannot sign in interactively; a manager of their branch
    provisions their device with this token instead.
    """
    service = StaffService(db)
    target = service.require_entity(body.user_id, ctx.principal.restaurant_id)

    if target.role not in BRANCH_STAFF_ROLES:
        raise ValidationError(
            "Device tokens are only issued to kitchen and waiter accounts",
            role=target.role,
        )

    ctx.require(Action(
        Resource.STAFF,
        Verb.UPDATE,
        restaurant_id=target.restaurant_id,
        branch_id=target.branch_id,
        staff_role=target.role,
    ))

    token = sign_jwt(staff_claims(target), token_type="device")
    audit_auth_event(
        "DEVICE_TOKEN",
        user_id=target.id,
        email=target.email,
        issued_by=ctx.principal.id,
    )
    logger.info(
        "Device token issued",
        user_id=target.id,
        email=mask_email(target.email),
        branch_id=target.branch_id,
    )
    return DeviceTokenResponse(
        token=token,
        token_type="device",
        expires_in=settings.jwt_device_token_expire_hours * 60 * 60,
        user=UserInfo.model_validate(target),
    )
