"""
Admin API Key Authentication

Validates admin API keys for maintenance and support endpoints.
"""

from fastapi import Header, status
from libs.result import Error
from src.api.error import ClientError
from src.app.services.crypto import timing_safe_equal
from config import ApplicationConfig


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Used by schedulers (maintenance) and support tooling. Different from
    user session authentication - this is service-to-service auth.

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not timing_safe_equal(x_admin_api_key, ApplicationConfig.ADMIN_API_KEY):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
