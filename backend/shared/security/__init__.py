"""
Security module: claims resolution, authentication, password hashing,
token revocation, rate limiting.
"""

from shared.security.claims import (
    InvalidCredentialsResponse,
    Principal,
    resolve_principal,
    resolve_login_response,
)
from shared.security.auth import (
    sign_jwt,
    staff_claims,
    verify_jwt,
    revoke_jwt,
    sign_table_token,
    verify_table_token,
    get_bearer_token,
    current_principal,
    optional_principal,
)
from shared.security.password import hash_password, verify_password
from shared.security.token_blacklist import blacklist_token, is_token_blacklisted
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler, LOGIN_RATE_LIMIT

__all__ = [
    # claims
    "InvalidCredentialsResponse",
    "Principal",
    "resolve_principal",
    "resolve_login_response",
    # auth
    "sign_jwt",
    "staff_claims",
    "verify_jwt",
    "revoke_jwt",
    "sign_table_token",
    "verify_table_token",
    "get_bearer_token",
    "current_principal",
    "optional_principal",
    # password
    "hash_password",
    "verify_password",
    # token_blacklist
    "blacklist_token",
    "is_token_blacklisted",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
    "LOGIN_RATE_LIMIT",
]
