"""
Per-IP rate limits (slowapi). Only the login endpoint is limited.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.settings import settings
from shared.utils.exceptions import RateLimitError

LOGIN_RATE_LIMIT = settings.login_rate_limit

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the application's error body: {"detail": {"code", "message", "limit"}}."""
    error = RateLimitError(str(exc.detail), path=request.url.path, client=get_remote_address(request))
    body = {"code": error.code, "message": error.message, "limit": str(exc.detail)}
    return JSONResponse({"detail": body}, status_code=error.status_code, headers=error.headers)
