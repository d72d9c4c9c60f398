"""
Common utilities shared across routers.
"""

from .base import (
    permission_context,
    live_principal,
    optional_live_principal,
    refresh_staff_principal,
    get_branch,
    default_branch,
)

__all__ = [
    "permission_context",
    "live_principal",
    "optional_live_principal",
    "refresh_staff_principal",
    "get_branch",
    "default_branch",
]
