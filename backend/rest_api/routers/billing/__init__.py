"""
Billing routers - /api/payments/*
Payment ledger: recording, listing and settling payments.
"""

from .routes import router

__all__ = ["router"]
