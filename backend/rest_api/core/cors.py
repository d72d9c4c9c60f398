"""
CORS for the staff dashboard and the customer table app.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings

# Local dev servers of the two front ends
LOCAL_ORIGINS = tuple(
    f"http://{host}:{port}"
    for host in ("localhost", "127.0.0.1")
    for port in (5173, 5174, 5175)
)

REQUEST_HEADERS = (
    "Authorization",
    "Content-Type",
    "Accept",
    "X-Table-Token",
    "X-Request-ID",
)


def cors_origins() -> list[str]:
    """ALLOWED_ORIGINS when configured, otherwise the local dev servers."""
    configured = [origin.strip() for origin in settings.allowed_origins.split(",")]
    return [origin for origin in configured if origin] or list(LOCAL_ORIGINS)


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=list(REQUEST_HEADERS),
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=0 if settings.debug else 600,
    )
