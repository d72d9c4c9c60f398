"""
Order routers - /api/orders/*
Placing orders, status transitions and the branch queues.
"""

from .routes import router

__all__ = ["router"]
