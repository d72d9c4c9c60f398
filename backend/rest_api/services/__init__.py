"""
Services module for business logic.

STRUCTURE:
- domain/: Application services (order lifecycle, sessions, payments, tenant directory)
- permissions/: Strategy pattern for role-based, tenant-scoped authorization
- base_service.py: Generic restaurant-scoped CRUD service

Usage:
    from rest_api.services.domain import OrderService
    from rest_api.services.permissions import PermissionContext, Action, Resource, Verb
"""
