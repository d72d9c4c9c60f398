"""
Admin API router - combines all admin sub-routers.

Tenant directory endpoints organized by domain:

- restaurant: Restaurant info and settings
- branches: Branch CRUD and admin assignment
- tables: Table CRUD
- menu: Menu catalog and branch availability overrides
- staff: Staff management and off-boarding
- reports: Branch operational summary

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from .restaurant import router as restaurant_router
from .branches import router as branches_router
from .tables import router as tables_router
from .menu import router as menu_router
from .staff import router as staff_router
from .reports import router as reports_router


router = APIRouter(prefix="/api/admin")

router.include_router(restaurant_router)
router.include_router(branches_router)
router.include_router(tables_router)
router.include_router(menu_router)
router.include_router(staff_router)
router.include_router(reports_router)


__all__ = ["router"]
