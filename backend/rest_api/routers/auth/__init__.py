"""
Authentication routers - /api/auth/*
Handles login, logout, device tokens and the current principal.
"""

from .routes import router

__all__ = ["router"]
