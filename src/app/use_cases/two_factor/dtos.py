"""
Two-Factor Use Case DTOs (Data Transfer Objects)
"""

from typing import List, Optional

from pydantic import BaseModel


class SetupTwoFactorResponse(BaseModel):
    """Shown to the user exactly once"""

    secret: str
    qr_payload: str  # otpauth:// URI for authenticator apps
    backup_codes: List[str]


class VerifySetupResponse(BaseModel):
    verified: bool
    message: str


class VerifyCodeResponse(BaseModel):
    verified: bool
    method: Optional[str] = None  # "totp" | "backup_code"
    remaining_backup_codes: int


class DisableTwoFactorResponse(BaseModel):
    disabled: bool
    revoked_sessions: int


class BackupCodesResponse(BaseModel):
    backup_codes: List[str]
