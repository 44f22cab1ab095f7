"""
Session Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class IssuedSession(BaseModel):
    """A freshly created session; session_token is returned only here"""

    session_id: str
    session_token: str
    expires_at: datetime


class SessionValidationResponse(BaseModel):
    session_id: str
    user_id: str
    expires_at: datetime
    needs_refresh: bool


class ActiveSession(BaseModel):
    session_id: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime
    expires_at: datetime
    is_current: bool


class ListSessionsResponse(BaseModel):
    sessions: List[ActiveSession]


class LogoutResponse(BaseModel):
    success: bool
    revoked: bool


class LogoutAllResponse(BaseModel):
    success: bool
    revoked_sessions: int


class RefreshSessionResponse(BaseModel):
    session: IssuedSession
    previous_session_id: str
