"""
Identity & claims resolution.

Authentication responses have come in several historical shapes: the token
under ``token``/``accessToken``/``jwt``/``access_token``, the user nested
under ``user`` or spread at the root, the role given as ``role``,
``authority`` or the first entry of ``authorities``. Token claims use their
own key names again. This module normalizes all of them into one immutable
:class:`Principal`.

Each field is resolved by an ordered tuple of extractor functions; the first
extractor that finds the field wins. Extractors are plain functions of
``(body, claims)`` so each can be tested in isolation.

Usage:
    principal = resolve_principal(response=login_response)
    principal = resolve_principal(claims=verified_jwt_payload)
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from shared.config.constants import Roles, ACCOUNT_ROLES


class InvalidCredentialsResponse(Exception):
    """The response/claims cannot be resolved into a principal."""


# Marker for "field not present", distinct from an explicit null
MISSING: Any = object()

Body = Mapping[str, Any]
Claims = Mapping[str, Any]
Extractor = Callable[[Body, Claims], Any]

USER_KEY = "user"
TOKEN_KEYS: tuple[str, ...] = ("token", "accessToken", "jwt", "access_token")
ROLE_PREFIX = "ROLE_"


@dataclass(frozen=True)
class Principal:
    """
    Canonical identity, role and tenant scope used for every authorization decision.

    Never mutated: re-authentication produces a new Principal.
    ``session_id``/``table_id`` are set for CUSTOMER principals bound to a table.
    """

    id: str | None
    role: str
    restaurant_id: int | None
    branch_id: int | None
    permissions: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None
    session_id: int | None = None
    table_id: int | None = None

    @property
    def user_id(self) -> int | None:
        """Numeric staff user id, None for customers."""
        if self.role not in ACCOUNT_ROLES or self.id is None:
            return None
        try:
            return int(self.id)
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "restaurant_id": self.restaurant_id,
            "branch_id": self.branch_id,
            "permissions": sorted(self.permissions),
            "email": self.email,
            "session_id": self.session_id,
            "table_id": self.table_id,
        }


# =============================================================================
# Raw response helpers
# =============================================================================


def extract_token(response: Mapping[str, Any]) -> str | None:
    """Return the bearer token from whichever key the response uses."""
    for key in TOKEN_KEYS:
        value = response.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def decode_claims(token: str) -> dict[str, Any]:
    """
    Decode the payload segment of a JWT without verifying its signature.

    Signature verification is the caller's concern (see shared.security.auth);
    this only checks the token is structurally a JWT.

    Raises:
        InvalidCredentialsResponse: not three dot-separated segments, or the
            middle segment is not base64url-encoded JSON object.
    """
    parts = token.split(".")
    if len(parts) != 3 or not all(parts[:2]):
        raise InvalidCredentialsResponse("malformed token: expected three segments")

    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        claims = json.loads(raw)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCredentialsResponse("malformed token: payload is not valid encoded JSON") from e

    if not isinstance(claims, dict):
        raise InvalidCredentialsResponse("malformed token: payload is not an object")
    return claims


# =============================================================================
# Extractors
# =============================================================================


def _key(source: str, *path: str) -> Extractor:
    """Build an extractor reading ``path`` from the body or the claims."""

    def extract(body: Body, claims: Claims) -> Any:
        current: Any = body if source == "body" else claims
        for part in path:
            if not isinstance(current, Mapping) or part not in current:
                return MISSING
            current = current[part]
        return current

    extract.__name__ = f"{source}:{'.'.join(path)}"
    return extract


def _first_authority(*prefix: str) -> Extractor:
    """``authorities[0]`` as a plain string or an ``{authority|role: ...}`` object."""
    read_authorities = _key("body", *prefix, "authorities")

    def extract(body: Body, claims: Claims) -> Any:
        return _first_of(read_authorities(body, claims))

    extract.__name__ = f"body:{'.'.join((*prefix, 'authorities'))}[0]"
    return extract


def _first_of(authorities: Any) -> Any:
    if not isinstance(authorities, (list, tuple)) or not authorities:
        return MISSING
    first = authorities[0]
    if isinstance(first, Mapping):
        for key in ("authority", "role"):
            if first.get(key) is not None:
                return first[key]
        return MISSING
    return first


def _user_then_root(*keys: tuple[str, ...]) -> tuple[Extractor, ...]:
    """Body extractors for each key path: the nested ``user`` first, then the root."""
    nested = tuple(_key("body", USER_KEY, *path) for path in keys)
    root = tuple(_key("body", *path) for path in keys)
    return nested + root


ROLE_EXTRACTORS: tuple[Extractor, ...] = (
    _key("body", USER_KEY, "role"),
    _key("body", USER_KEY, "authority"),
    _first_authority(USER_KEY),
    _key("body", "role"),
    _key("body", "authority"),
    _first_authority(),
    _key("claims", "role"),
    _key("claims", "authority"),
)

ID_EXTRACTORS: tuple[Extractor, ...] = (
    *_user_then_root(("id",), ("userId",), ("user_id",)),
    _key("claims", "userId"),
    _key("claims", "sub"),
    _key("claims", "id"),
)

EMAIL_EXTRACTORS: tuple[Extractor, ...] = (
    *_user_then_root(("email",), ("username",)),
    _key("claims", "email"),
    _key("claims", "username"),
)

RESTAURANT_EXTRACTORS: tuple[Extractor, ...] = (
    *_user_then_root(("restaurantId",), ("restaurant_id",), ("restaurant", "id")),
    _key("claims", "restaurantId"),
    _key("claims", "restaurant_id"),
    _key("claims", "restId"),
)

BRANCH_EXTRACTORS: tuple[Extractor, ...] = (
    *_user_then_root(("branchId",), ("branch_id",), ("branch", "id")),
    _key("claims", "branchId"),
    _key("claims", "branch_id"),
)

PERMISSION_EXTRACTORS: tuple[Extractor, ...] = (
    *_user_then_root(("permissions",)),
    _key("claims", "permissions"),
)

SESSION_EXTRACTORS: tuple[Extractor, ...] = (
    _key("claims", "sessionId"),
    _key("claims", "session_id"),
)

TABLE_EXTRACTORS: tuple[Extractor, ...] = (
    _key("claims", "tableId"),
    _key("claims", "table_id"),
)


def first_present(
    extractors: tuple[Extractor, ...],
    body: Body,
    claims: Claims,
    skip_null: bool = False,
) -> Any:
    """
    Run extractors in order and return the first value found.

    An explicit null counts as found (it is preserved) unless ``skip_null``.
    """
    for extractor in extractors:
        value = extractor(body, claims)
        if value is MISSING or (skip_null and value is None):
            continue
        return value
    return MISSING


# =============================================================================
# Normalizers
# =============================================================================


def normalize_role(raw: Any) -> str:
    """
    Match a raw role case-insensitively against the fixed role set.
    A ``ROLE_`` prefix is accepted.

    Raises:
        InvalidCredentialsResponse: value is not a known role.
    """
    if not isinstance(raw, str):
        raise InvalidCredentialsResponse(f"unrecognized role {raw!r}")
    role = raw.strip().upper()
    if role.startswith(ROLE_PREFIX):
        role = role[len(ROLE_PREFIX):]
    if role not in Roles.ALL:
        raise InvalidCredentialsResponse(f"unrecognized role {raw!r}")
    return role


def _normalize_scope_id(raw: Any, name: str) -> int | None:
    if raw is MISSING or raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidCredentialsResponse(f"malformed {name}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise InvalidCredentialsResponse(f"malformed {name}")


def _normalize_identifier(raw: Any) -> str | None:
    if raw is MISSING or raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (str, int)):
        return str(raw)
    return None


def normalize_permissions(raw: Any) -> frozenset[str]:
    """Only a list of strings is honored; any other shape is an empty set."""
    if not isinstance(raw, (list, tuple)):
        return frozenset()
    if not all(isinstance(p, str) for p in raw):
        return frozenset()
    return frozenset(raw)


# =============================================================================
# Resolution
# =============================================================================


def resolve_principal(
    response: Mapping[str, Any] | None = None,
    claims: Mapping[str, Any] | None = None,
) -> Principal:
    """
    Resolve one canonical Principal from an auth response and/or token claims.

    The body is preferred for every field, a nested ``user`` object before the
    response root; claims are the fallback. When no
    claims are given and the response carries a token, the token's payload
    is decoded for them.

    Raises:
        InvalidCredentialsResponse: no role could be resolved, the role is
            unknown, or the token is structurally malformed.
    """
    if response is None and claims is None:
        raise InvalidCredentialsResponse("no authentication data")

    body: Body = response if response is not None else {}
    if claims is None:
        token = extract_token(response) if response is not None else None
        claims = decode_claims(token) if token else {}

    raw_role = first_present(ROLE_EXTRACTORS, body, claims, skip_null=True)
    if raw_role is MISSING:
        raise InvalidCredentialsResponse("no role in response or token claims")

    return Principal(
        id=_normalize_identifier(first_present(ID_EXTRACTORS, body, claims, skip_null=True)),
        role=normalize_role(raw_role),
        restaurant_id=_normalize_scope_id(
            first_present(RESTAURANT_EXTRACTORS, body, claims), "restaurantId"
        ),
        branch_id=_normalize_scope_id(first_present(BRANCH_EXTRACTORS, body, claims), "branchId"),
        permissions=normalize_permissions(first_present(PERMISSION_EXTRACTORS, body, claims)),
        email=_normalize_identifier(first_present(EMAIL_EXTRACTORS, body, claims, skip_null=True)),
        session_id=_normalize_scope_id(first_present(SESSION_EXTRACTORS, body, claims), "sessionId"),
        table_id=_normalize_scope_id(first_present(TABLE_EXTRACTORS, body, claims), "tableId"),
    )


def resolve_login_response(response: Mapping[str, Any]) -> tuple[str, Principal]:
    """
    Resolve a login response into ``(token, principal)``.

    Raises:
        InvalidCredentialsResponse: the response carries no token or cannot
            be resolved.
    """
    token = extract_token(response)
    if token is None:
        raise InvalidCredentialsResponse("no token in response")
    return token, resolve_principal(response=response)
