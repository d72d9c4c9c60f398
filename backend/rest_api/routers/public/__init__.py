"""
Public routers - No authentication required.
- /api/public/* - Public menu
- /api/health - Health check
"""

from .menu import router as menu_router
from .health import router as health_router

__all__ = ["menu_router", "health_router"]
