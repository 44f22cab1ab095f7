"""
Authentication Use Case DTOs (Data Transfer Objects)

Response classes for the login flow.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.app.use_cases.sessions.dtos import IssuedSession


class UserInfo(BaseModel):
    """User information in authentication responses"""

    id: str
    email: str
    two_factor_enabled: bool


class LoginResponse(BaseModel):
    """
    Response for login and 2FA login completion.

    Exactly one of session / two_factor_token is set.
    """

    user: UserInfo
    requires_2fa: bool
    session: Optional[IssuedSession] = None
    two_factor_token: Optional[str] = None
    two_factor_expires_at: Optional[datetime] = None
