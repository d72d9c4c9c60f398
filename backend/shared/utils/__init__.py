"""
Utilities: the error hierarchy, API schemas and health checks.

Routers and services raise the errors below; FastAPI renders them as
``{"detail": {"code": ..., "message": ..., **context}}``.
"""

from shared.utils.exceptions import (
    AppException,
    AuthorizationDeniedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    VersionConflictError,
)

__all__ = [
    "AppException",
    "AuthorizationDeniedError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "VersionConflictError",
]
