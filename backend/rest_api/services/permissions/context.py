"""
Permission Context - Main entry point for permission checks.
"""

from __future__ import annotations

from shared.config.logging import audit_authorization_denied
from shared.security.claims import Principal
from shared.utils.exceptions import AuthorizationDeniedError

from .strategies import (
    Action,
    Decision,
    PermissionStrategy,
    Resource,
    Verb,
    get_strategy_for_role,
    landing_path_for,
)


class PermissionContext:
    """
    Context for performing permission checks.

    Selects the strategy for the principal's role.

    Usage:
        ctx = PermissionContext(principal)

        ctx.require(Action(Resource.ORDER, Verb.READ, branch_id=order.branch_id))

        if ctx.can(Action(Resource.PAYMENT, Verb.CREATE, branch_id=5)):
            ...
    """

    def __init__(self, principal: Principal):
        self._principal = principal
        self._strategy = get_strategy_for_role(principal.role)

    @property
    def principal(self) -> Principal:
        return self._principal

    @property
    def strategy(self) -> PermissionStrategy:
        """Get current permission strategy."""
        return self._strategy

    @property
    def landing_path(self) -> str:
        return landing_path_for(self._principal.role)

    def decide(self, action: Action) -> Decision:
        return self._strategy.decide(self._principal, action)

    def can(self, action: Action) -> bool:
        return self.decide(action).allowed

    def require(self, action: Action) -> None:
        """
        Raise AuthorizationDeniedError carrying the deny reason.

        Denials are written to the security audit log.
        """
        decision = self.decide(action)
        if decision.allowed:
            return
        audit_authorization_denied(
            principal_id=self._principal.id,
            role=self._principal.role,
            resource=action.resource.value,
            verb=action.verb.value,
            reason=decision.reason,
            restaurant_id=action.restaurant_id,
            branch_id=action.branch_id,
        )
        raise AuthorizationDeniedError(
            decision.reason,
            resource=action.resource.value,
            verb=action.verb.value,
        )

    def require_order_transition(
        self,
        order,
        target_status: str,
    ) -> None:
        """Shorthand for a status transition on a loaded order."""
        self.require(Action(
            Resource.ORDER,
            Verb.TRANSITION,
            restaurant_id=order.restaurant_id,
            branch_id=order.branch_id,
            session_id=order.session_id,
            from_status=order.status,
            to_status=target_status,
        ))
