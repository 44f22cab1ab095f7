"""
Two-Factor Use Cases

TOTP setup, verification, disablement and backup code management.
"""

from .setup_two_factor_use_case import SetupTwoFactorUseCase
from .verify_two_factor_setup_use_case import VerifyTwoFactorSetupUseCase
from .verify_two_factor_code_use_case import VerifyTwoFactorCodeUseCase
from .disable_two_factor_use_case import DisableTwoFactorUseCase
from .regenerate_backup_codes_use_case import RegenerateBackupCodesUseCase
from .dtos import (
    SetupTwoFactorResponse,
    VerifySetupResponse,
    VerifyCodeResponse,
    DisableTwoFactorResponse,
    BackupCodesResponse,
)

__all__ = [
    # Use Cases
    "SetupTwoFactorUseCase",
    "VerifyTwoFactorSetupUseCase",
    "VerifyTwoFactorCodeUseCase",
    "DisableTwoFactorUseCase",
    "RegenerateBackupCodesUseCase",
    # DTOs
    "SetupTwoFactorResponse",
    "VerifySetupResponse",
    "VerifyCodeResponse",
    "DisableTwoFactorResponse",
    "BackupCodesResponse",
]
