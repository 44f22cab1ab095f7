"""
Security Core Error Taxonomy

Every failed use case returns one of these through ``Return.err``.
The API layer maps the class (not the code) to an HTTP status.
"""

from datetime import datetime
from typing import Optional

from libs.result import Error


class ValidationError(Error):
    """Bad input shape or password strength"""


class NotFoundError(Error):
    """Internal only - never surfaced distinctly to external callers"""


class AuthenticationError(Error):
    """Credentials rejected (collapsed to one generic message)"""


class TokenError(Error):
    """Reset token, session token or 2FA login token invalid/expired/used"""

    def __init__(self, message: str = "Invalid or expired reset token", code: str = "INVALID_TOKEN"):
        super().__init__(code, message)


class TwoFactorError(Error):
    """Bad 2FA code or invalid 2FA state transition"""


class SecurityError(Error):
    """Generic internal failure, e.g. store unavailable"""

    def __init__(self, message: str = "Request could not be completed", code: str = "INTERNAL_ERROR"):
        super().__init__(code, message)


class RateLimitError(Error):
    """Too many requests for an identity; carries the wait time"""

    def __init__(self, message: str, wait_time_ms: int, reset_time: Optional[datetime] = None):
        super().__init__(
            "RATE_LIMITED",
            message,
            {"wait_time_ms": wait_time_ms, "reset_time": reset_time},
        )
        self.wait_time_ms = wait_time_ms
        self.reset_time = reset_time
