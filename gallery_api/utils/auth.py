"""
Admin gate for privileged endpoints.
A shared secret is expected in the X-Admin-Key header. The check is only
enforced when the application runs in production.
"""
import logging
import secrets
from typing import Optional

from fastapi import Header

from gallery_api.config import settings
from gallery_api.exceptions import AuthError

logger = logging.getLogger(__name__)


def verify_admin_key(key: Optional[str], expected: str) -> bool:
    """
    Compare a provided admin key with the configured one.

    Args:
        key: Value of the X-Admin-Key header, if any
        expected: Configured ADMIN_KEY

    Returns:
        True if both are set and equal
    """
    if not key or not expected:
        return False
    return secrets.compare_digest(key.encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key", description="Admin shared secret")
) -> bool:
    """
    FastAPI dependency guarding admin endpoints.

    Raises:
        AuthError: 401 in production when the key is missing or wrong
    """
    if not settings.is_production:
        return True

    if not settings.ADMIN_KEY:
        logger.error("ADMIN_KEY not configured; rejecting admin request")

    if not verify_admin_key(x_admin_key, settings.ADMIN_KEY):
        raise AuthError("Unauthorized: Admin access required")

    return True
