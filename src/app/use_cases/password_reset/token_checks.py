"""
Reset token checks shared by validation and completion.
"""

from datetime import datetime
from typing import List, Optional

from src.app.services.crypto import (
    hash_token,
    is_valid_token_format,
    sanitize_user_agent,
    timing_safe_equal,
)
from src.app.services.security_settings import SecuritySettings
from src.domain.entities import PasswordResetToken

TOKEN_NOT_FOUND = "Invalid or expired reset token"


def reset_token_errors(
    record: Optional[PasswordResetToken],
    token: str,
    ip_address: Optional[str],
    user_agent: Optional[str],
    settings: SecuritySettings,
    now: datetime,
) -> List[str]:
    """All reasons the token cannot be used; empty when it is valid."""
    if record is None:
        return [TOKEN_NOT_FOUND]

    errors = []
    if not is_valid_token_format(token):
        errors.append("Invalid token format")
    if record.is_used:
        errors.append("Token has already been used")
    if record.is_expired(now):
        errors.append("Token has expired")
    if not timing_safe_equal(hash_token(token), record.token_hash):
        errors.append("Invalid token")

    if settings.reset_strict_ip_binding and record.ip_address and ip_address != record.ip_address:
        errors.append("Token not valid from this IP address")
    if (
        settings.reset_strict_user_agent_binding
        and record.user_agent
        and sanitize_user_agent(user_agent) != record.user_agent
    ):
        errors.append("Token not valid from this user agent")

    return errors
