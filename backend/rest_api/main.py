"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core import lifespan, configure_cors, register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.sessions import router as sessions_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.billing import router as billing_router
from rest_api.routers.admin import router as admin_router
from rest_api.routers.public import health_router, menu_router


app = FastAPI(
    title="tableflow REST API",
    description="Restaurant ordering: table sessions, order lifecycle, payments and tenant directory",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(menu_router)
app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(orders_router)
app.include_router(billing_router)
app.include_router(admin_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
