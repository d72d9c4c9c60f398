"""
Infrastructure: the relational database, Redis and request correlation.
"""

from shared.infrastructure.db import SessionLocal, engine, get_db, get_db_context, safe_commit
from shared.infrastructure.redis_client import close_redis_sync_client, get_redis_sync_client
from shared.infrastructure.correlation import CorrelationIdMiddleware, current_request_id

__all__ = [
    "SessionLocal",
    "engine",
    "get_db",
    "get_db_context",
    "safe_commit",
    "close_redis_sync_client",
    "get_redis_sync_client",
    "CorrelationIdMiddleware",
    "current_request_id",
]
