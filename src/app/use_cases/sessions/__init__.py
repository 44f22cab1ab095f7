"""
Session Use Cases

Validation, rotation, listing and revocation of bearer sessions.
"""

from .validate_session_use_case import ValidateSessionUseCase
from .refresh_session_use_case import RefreshSessionUseCase
from .list_sessions_use_case import ListSessionsUseCase
from .logout_use_case import LogoutUseCase, LogoutAllDevicesUseCase
from .dtos import (
    IssuedSession,
    SessionValidationResponse,
    ActiveSession,
    ListSessionsResponse,
    LogoutResponse,
    LogoutAllResponse,
    RefreshSessionResponse,
)

__all__ = [
    # Use Cases
    "ValidateSessionUseCase",
    "RefreshSessionUseCase",
    "ListSessionsUseCase",
    "LogoutUseCase",
    "LogoutAllDevicesUseCase",
    # DTOs
    "IssuedSession",
    "SessionValidationResponse",
    "ActiveSession",
    "ListSessionsResponse",
    "LogoutResponse",
    "LogoutAllResponse",
    "RefreshSessionResponse",
]
