"""
Tests for identity & claims resolution.
"""

import base64
import json

import pytest
from hypothesis import given, strategies as st

from shared.config.constants import Roles
from shared.security.claims import (
    InvalidCredentialsResponse,
    decode_claims,
    extract_token,
    normalize_permissions,
    normalize_role,
    resolve_login_response,
    resolve_principal,
)


def make_token(claims: dict) -> str:
    """Unsigned JWT-shaped token carrying ``claims``."""
    def segment(data: dict) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(claims)}.signature"


class TestTokenExtraction:
    """Tests for finding the token in a response."""

    @pytest.mark.parametrize("key", ["token", "accessToken", "jwt", "access_token"])
    def test_extract_token_from_any_known_key(self, key):
        """Should find the token under every supported key."""
        assert extract_token({key: "abc.def.ghi"}) == "abc.def.ghi"

    def test_extract_token_prefers_first_key(self):
        """Should prefer ``token`` over the other keys."""
        assert extract_token({"access_token": "b", "token": "a"}) == "a"

    def test_extract_token_missing(self):
        """Should return None when no token key is present."""
        assert extract_token({"user": {}}) is None


class TestRoleResolution:
    """Tests for the role precedence chain."""

    def test_role_from_body(self):
        """Should take ``role`` from the user object."""
        principal = resolve_principal(response={"user": {"role": "ADMIN"}})
        assert principal.role == Roles.ADMIN

    def test_role_from_authority(self):
        """Should fall back to ``authority``."""
        principal = resolve_principal(response={"authority": "kitchen"})
        assert principal.role == Roles.KITCHEN

    def test_role_from_authorities_list(self):
        """Should fall back to the first entry of ``authorities``."""
        principal = resolve_principal(response={"authorities": ["ROLE_WAITER", "ROLE_ADMIN"]})
        assert principal.role == Roles.WAITER

    def test_role_from_authorities_objects(self):
        """Should read ``authority`` from object entries."""
        principal = resolve_principal(response={"authorities": [{"authority": "ROLE_SUPERADMIN"}]})
        assert principal.role == Roles.SUPERADMIN

    def test_role_from_claims(self):
        """Should use the token's role claim when the body has none."""
        token = make_token({"sub": "7", "role": "admin", "restaurantId": 1, "branchId": 2})
        principal = resolve_principal(response={"token": token, "user": {"id": 7}})
        assert principal.role == Roles.ADMIN

    def test_body_role_wins_over_claims(self):
        """Should prefer the body role over the claim."""
        token = make_token({"role": "KITCHEN"})
        principal = resolve_principal(response={"token": token, "role": "ADMIN"})
        assert principal.role == Roles.ADMIN

    def test_unknown_role_fails(self):
        """Should reject a role outside the fixed set."""
        with pytest.raises(InvalidCredentialsResponse):
            resolve_principal(response={"role": "MANAGER"})

    def test_missing_role_fails(self):
        """Should fail when neither body nor claims carry a role."""
        with pytest.raises(InvalidCredentialsResponse):
            resolve_principal(response={"user": {"id": 1}})

    @given(st.sampled_from(Roles.ALL), st.booleans(), st.sampled_from(["lower", "upper", "title"]))
    def test_normalize_role_case_and_prefix(self, role, prefixed, case):
        """Should accept any casing with or without the ROLE_ prefix."""
        raw = f"ROLE_{role}" if prefixed else role
        raw = getattr(raw, case)()
        assert normalize_role(raw) == role

    @given(st.text().filter(lambda s: s.strip().upper().removeprefix("ROLE_") not in Roles.ALL))
    def test_normalize_role_rejects_everything_else(self, raw):
        """Should reject any string that is not a known role."""
        with pytest.raises(InvalidCredentialsResponse):
            normalize_role(raw)


class TestScopeResolution:
    """Tests for identity, tenant scope and permissions."""

    def test_scope_from_body_first(self):
        """Should take ids from the body before the claims."""
        token = make_token({"role": "ADMIN", "restaurantId": 9, "branchId": 9, "sub": "9"})
        principal = resolve_principal(response={
            "token": token,
            "user": {"id": 1, "restaurantId": 2, "branchId": 3, "email": "a@tableflow.io"},
        })
        assert principal.id == "1"
        assert principal.restaurant_id == 2
        assert principal.branch_id == 3
        assert principal.email == "a@tableflow.io"

    def test_null_branch_preserved(self):
        """Should keep an explicit null branch instead of falling back to claims."""
        token = make_token({"role": "SUPERADMIN", "branchId": 5})
        principal = resolve_principal(response={"token": token, "user": {"branchId": None}})
        assert principal.branch_id is None

    def test_root_fields_beside_nested_user(self):
        """Should read role and scope from the root when the nested user lacks them."""
        principal = resolve_principal(
            response={
                "token": "x",
                "role": "ADMIN",
                "restaurantId": 4,
                "branchId": 6,
                "user": {"id": 7, "email": "admin@tableflow.io"},
            },
            claims={},
        )
        assert principal.role == Roles.ADMIN
        assert principal.id == "7"
        assert principal.restaurant_id == 4
        assert principal.branch_id == 6
        assert principal.email == "admin@tableflow.io"

    def test_nested_user_wins_over_root(self):
        """Should prefer the nested user's fields over the root's."""
        principal = resolve_principal(
            response={"role": "KITCHEN", "branchId": 9, "user": {"role": "WAITER", "branchId": 2}},
            claims={},
        )
        assert principal.role == Roles.WAITER
        assert principal.branch_id == 2

    def test_root_authorities_beside_nested_user(self):
        """Should fall back to root ``authorities`` when the nested user has no role."""
        principal = resolve_principal(
            response={"authorities": ["ROLE_KITCHEN"], "user": {"id": 3}}, claims={}
        )
        assert principal.role == Roles.KITCHEN

    def test_snake_case_keys(self):
        """Should accept snake_case scope keys."""
        principal = resolve_principal(response={
            "user": {"role": "ADMIN", "restaurant_id": "4", "branch_id": 6},
        })
        assert principal.restaurant_id == 4
        assert principal.branch_id == 6

    def test_customer_session_from_claims(self):
        """Should carry session and table ids for table-token claims."""
        principal = resolve_principal(claims={
            "role": "CUSTOMER", "restaurantId": 1, "branchId": 2, "sessionId": 10, "tableId": 3,
        })
        assert principal.session_id == 10
        assert principal.table_id == 3
        assert principal.user_id is None

    def test_staff_user_id(self):
        """Should expose the numeric staff id."""
        principal = resolve_principal(claims={"role": "KITCHEN", "sub": "42"})
        assert principal.user_id == 42

    def test_permissions_list(self):
        """Should keep a list of strings as the permission set."""
        assert normalize_permissions(["a", "b", "a"]) == frozenset({"a", "b"})

    @pytest.mark.parametrize("raw", [None, "orders:read", {"a": 1}, [1, 2], ["a", 3]])
    def test_permissions_malformed_is_empty(self, raw):
        """Should degrade any other shape to an empty set."""
        assert normalize_permissions(raw) == frozenset()

    def test_principal_is_immutable(self):
        """Should not allow mutating a resolved principal."""
        principal = resolve_principal(claims={"role": "ADMIN"})
        with pytest.raises(AttributeError):
            principal.role = Roles.SUPERADMIN


class TestMalformedTokens:
    """Tests for structural token checks."""

    @pytest.mark.parametrize("token", ["abc", "a.b", "a.b.c.d", ".b.c"])
    def test_wrong_segment_count(self, token):
        """Should reject tokens without three segments."""
        with pytest.raises(InvalidCredentialsResponse):
            decode_claims(token)

    def test_payload_not_base64_json(self):
        """Should reject a middle segment that is not base64url JSON."""
        with pytest.raises(InvalidCredentialsResponse):
            decode_claims("aGVhZA.!!!notbase64!!!.sig")

    def test_payload_not_object(self):
        """Should reject a payload that decodes to a non-object."""
        payload = base64.urlsafe_b64encode(b"[1, 2]").rstrip(b"=").decode()
        with pytest.raises(InvalidCredentialsResponse):
            decode_claims(f"aGVhZA.{payload}.sig")

    def test_login_response_without_token(self):
        """Should reject a login response that carries no token."""
        with pytest.raises(InvalidCredentialsResponse):
            resolve_login_response({"user": {"role": "ADMIN"}})

    def test_login_response_malformed_token(self):
        """Should reject a login response whose token is malformed and no body role."""
        with pytest.raises(InvalidCredentialsResponse):
            resolve_login_response({"token": "not-a-jwt", "user": {"id": 1}})

    def test_login_response_resolves(self):
        """Should return the token and the principal."""
        token = make_token({"role": "ADMIN", "restaurantId": 1, "branchId": 2, "sub": "5"})
        resolved_token, principal = resolve_login_response({"accessToken": token})
        assert resolved_token == token
        assert principal.role == Roles.ADMIN
        assert principal.branch_id == 2
