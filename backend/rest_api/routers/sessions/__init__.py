"""
Session routers - /api/sessions/*
Start, join and end dining sessions at a table.
"""

from .routes import router

__all__ = ["router"]
