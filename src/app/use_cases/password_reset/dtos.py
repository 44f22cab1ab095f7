"""
Password Reset Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

GENERIC_RESET_MESSAGE = "If an account with that email exists, we've sent password reset instructions."
RESET_COMPLETED_MESSAGE = "Password reset successfully! You can now log in with your new password."


class InitiateResetResponse(BaseModel):
    """Identical for existing and unknown emails"""

    success: bool
    message: str
    remaining_requests: int
    reset_time: datetime


class TokenData(BaseModel):
    user_id: str
    expires_at: datetime
    time_to_expiry_ms: int


class ValidateTokenResponse(BaseModel):
    is_valid: bool
    errors: List[str]
    token_data: Optional[TokenData] = None


class CompleteResetResponse(BaseModel):
    success: bool
    message: str
    revoked_sessions: int


class InvalidateTokensResponse(BaseModel):
    user_id: str
    invalidated_tokens: int
