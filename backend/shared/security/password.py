"""
Staff password hashing (bcrypt).
"""

import bcrypt

from shared.config.logging import get_logger

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12


def _is_bcrypt_hash(value: str) -> bool:
    return value[:4] in ("$2a$", "$2b$", "$2y$")


def hash_password(password: str) -> str:
    digest = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode()


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Check a candidate password against a stored hash.

    Anything stored that is not a bcrypt hash never verifies.
    """
    if not hashed_password or not _is_bcrypt_hash(hashed_password):
        logger.warning("Stored password is not a bcrypt hash")
        return False
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
