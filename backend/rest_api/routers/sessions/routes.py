"""
Session registry router.

Customers scanning a table start or join its session anonymously and get a
table token back. Managers may start and end sessions on behalf of a table.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.config.constants import ACCOUNT_ROLES
from shared.security.auth import sign_table_token
from shared.security.claims import Principal
from shared.utils.schemas import (
    JoinSessionRequest,
    SessionOutput,
    SessionTokenResponse,
    StartSessionRequest,
)
from rest_api.models import DiningSession
from rest_api.routers._common import default_branch, get_branch, optional_live_principal, permission_context
from rest_api.services.domain import SessionService
from rest_api.services.permissions import Action, PermissionContext, Resource, Verb


router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _session_action(session: DiningSession, verb: Verb) -> Action:
    return Action(
        Resource.SESSION,
        verb,
        restaurant_id=session.restaurant_id,
        branch_id=session.branch_id,
        session_id=session.id,
    )


def _token_response(session: DiningSession, is_owner: bool) -> SessionTokenResponse:
    token = sign_table_token(
        restaurant_id=session.restaurant_id,
        branch_id=session.branch_id,
        table_id=session.table_id,
        session_id=session.id,
        is_owner=is_owner,
    )
    return SessionTokenResponse(
        session=SessionOutput.model_validate(session),
        table_token=token,
        is_owner=is_owner,
    )


@router.post("/start", response_model=SessionTokenResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    body: StartSessionRequest,
    db: Session = Depends(get_db),
    principal: Principal | None = Depends(optional_live_principal),
) -> SessionTokenResponse:
    """
    Start a session on a table.

    Anonymous callers are customers at the table and become the session
    owner. Staff callers must be allowed to create sessions in the table's
    branch.
    """
    service = SessionService(db)
    user_id = None
    user_email = None

    if principal is not None and principal.role in ACCOUNT_ROLES:
        table = service.get_table(body.table_id)
        PermissionContext(principal).require(Action(
            Resource.SESSION,
            Verb.CREATE,
            restaurant_id=table.restaurant_id,
            branch_id=table.branch_id,
        ))
        user_id = principal.user_id
        user_email = principal.email

    session = service.start_session(body.table_id, user_id, user_email)
    return _token_response(session, is_owner=True)


@router.post("/join", response_model=SessionTokenResponse)
def join_session(
    body: JoinSessionRequest,
    db: Session = Depends(get_db),
) -> SessionTokenResponse:
    """Join the table's active session as a guest."""
    session = SessionService(db).join_session(body.table_id)
    return _token_response(session, is_owner=False)


@router.get("/table/{table_id}/active", response_model=SessionOutput | None)
def get_active_session(table_id: int, db: Session = Depends(get_db)) -> SessionOutput | None:
    """The table's active session, or null when the table is free."""
    service = SessionService(db)
    service.get_table(table_id)
    session = service.get_active_session(table_id)
    return SessionOutput.model_validate(session) if session else None


@router.get("", response_model=list[SessionOutput])
def list_active_sessions(
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> list[SessionOutput]:
    """Active sessions of a branch (defaults to the caller's branch)."""
    branch_id = default_branch(ctx.principal, branch_id)
    if branch_id is None:
        return []
    branch = get_branch(db, branch_id)
    ctx.require(Action(
        Resource.SESSION,
        Verb.READ,
        restaurant_id=branch.restaurant_id,
        branch_id=branch.id,
    ))
    sessions = SessionService(db).list_active_sessions(branch.id)
    return [SessionOutput.model_validate(s) for s in sessions]


@router.get("/{session_id}", response_model=SessionOutput)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> SessionOutput:
    session = SessionService(db).get_session(session_id)
    ctx.require(_session_action(session, Verb.READ))
    return SessionOutput.model_validate(session)


@router.post("/{session_id}/end", status_code=status.HTTP_204_NO_CONTENT)
def end_session(
    session_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(permission_context),
) -> None:
    """
    End a session.

    Refused with 409 while any of its orders is neither completed nor
    cancelled, and on a session that has already ended.
    """
    service = SessionService(db)
    session = service.get_session(session_id)
    ctx.require(_session_action(session, Verb.UPDATE))
    service.end_session(session_id, ctx.principal.user_id)
