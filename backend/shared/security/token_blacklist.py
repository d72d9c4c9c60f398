"""
Revoked staff tokens, kept in Redis by JWT id.

Each entry expires together with the token it revokes.
"""

from datetime import datetime, timezone

import redis

from shared.config.logging import get_logger, mask_jti
from shared.infrastructure.redis_client import PREFIX_AUTH_BLACKLIST, get_redis_sync_client

logger = get_logger(__name__)


def _key(token_jti: str) -> str:
    return PREFIX_AUTH_BLACKLIST + token_jti


def blacklist_token(token_jti: str, expires_at: datetime) -> bool:
    """
    Revoke a token until it would have expired anyway.

    Returns False when Redis refused the write.
    """
    remaining = int((expires_at - datetime.now(timezone.utc)).total_seconds())
    if remaining <= 0:
        return True

    try:
        get_redis_sync_client().set(_key(token_jti), "1", ex=remaining)
    except redis.RedisError as e:
        logger.error("Token revocation not stored", jti=mask_jti(token_jti), error=str(e))
        return False

    logger.info("Token revoked", jti=mask_jti(token_jti), ttl_seconds=remaining)
    return True


def is_token_blacklisted(token_jti: str) -> bool:
    """Whether the token was revoked. An unreachable Redis counts as revoked."""
    try:
        return bool(get_redis_sync_client().exists(_key(token_jti)))
    except redis.RedisError as e:
        logger.error("Revocation lookup failed, rejecting token", jti=mask_jti(token_jti), error=str(e))
        return True
