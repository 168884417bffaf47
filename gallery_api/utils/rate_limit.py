"""
Rate limiting for API endpoints.
Uses slowapi with in-memory counters keyed by client IP.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from gallery_api.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.

    Args:
        request: FastAPI request object

    Returns:
        str: Client identifier (IP address)
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


# Counters live in process memory and reset on restart
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.API_RATE_LIMIT],
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)


RATE_LIMITS = {
    "upload": settings.UPLOAD_RATE_LIMIT,
}
