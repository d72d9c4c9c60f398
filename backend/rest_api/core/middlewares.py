"""
HTTP middlewares: correlation ids, security headers, JSON-only bodies.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    # Responses are JSON only; nothing may be embedded or executed
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response, plus HSTS in production."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if settings.environment == "production":
            response.headers[HSTS_HEADER[0]] = HSTS_HEADER[1]
        return response


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Rejects POST, PUT and PATCH bodies that declare a non-JSON content type
    with 415 UnsupportedMediaType.
    """

    METHODS_WITH_BODY = frozenset({"POST", "PUT", "PATCH"})

    async def dispatch(self, request: Request, call_next):
        content_type = request.headers.get("content-type", "")
        if (
            request.method in self.METHODS_WITH_BODY
            and content_type
            and content_type.split(";")[0].strip().lower() != "application/json"
        ):
            return JSONResponse(
                status_code=415,
                content={"detail": {
                    "code": "UnsupportedMediaType",
                    "message": "Request bodies must be application/json",
                    "content_type": content_type,
                }},
            )
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    # Starlette runs the last added first; the correlation id must be set
    # before anything else logs
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
