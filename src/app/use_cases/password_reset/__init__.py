"""
Password Reset Use Cases

Initiate, validate and complete the reset flow.
"""

from .initiate_password_reset_use_case import InitiatePasswordResetUseCase
from .validate_reset_token_use_case import ValidateResetTokenUseCase
from .complete_password_reset_use_case import CompletePasswordResetUseCase
from .invalidate_user_reset_tokens_use_case import InvalidateUserResetTokensUseCase
from .dtos import (
    GENERIC_RESET_MESSAGE,
    RESET_COMPLETED_MESSAGE,
    InitiateResetResponse,
    ValidateTokenResponse,
    TokenData,
    CompleteResetResponse,
    InvalidateTokensResponse,
)

__all__ = [
    # Use Cases
    "InitiatePasswordResetUseCase",
    "ValidateResetTokenUseCase",
    "CompletePasswordResetUseCase",
    "InvalidateUserResetTokensUseCase",
    # DTOs
    "InitiateResetResponse",
    "ValidateTokenResponse",
    "TokenData",
    "CompleteResetResponse",
    "InvalidateTokensResponse",
    # Messages
    "GENERIC_RESET_MESSAGE",
    "RESET_COMPLETED_MESSAGE",
]
