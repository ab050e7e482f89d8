"""
Rate limiting middleware for FastAPI
Uses slowapi with Redis backend when REDIS_URL is configured
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.config import settings

# In-memory storage only works for single-instance deployments
storage_uri = settings.REDIS_URL or "memory://"

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=storage_uri,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute", f"{settings.RATE_LIMIT_PER_HOUR}/hour"],
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False
)

LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "10/hour"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors
    """
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "message": f"Too many requests. Limit: {exc.detail}",
        }
    )
    return response
