"""
Authentication Use Cases

Password login and the two-factor login step.
"""

from .login_use_case import LoginUseCase
from .complete_two_factor_login_use_case import CompleteTwoFactorLoginUseCase
from .dtos import LoginResponse, UserInfo

__all__ = [
    # Use Cases
    "LoginUseCase",
    "CompleteTwoFactorLoginUseCase",
    # DTOs
    "LoginResponse",
    "UserInfo",
]
