"""
Two-Factor API Routes

TOTP management for the signed-in user.
"""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import to_http_error
from src.app.services.audit_log import AuditLog
from src.app.services.passwords import PasswordHasher
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.two_factor import (
    BackupCodesResponse,
    DisableTwoFactorResponse,
    DisableTwoFactorUseCase,
    RegenerateBackupCodesUseCase,
    SetupTwoFactorResponse,
    SetupTwoFactorUseCase,
    VerifyCodeResponse,
    VerifySetupResponse,
    VerifyTwoFactorCodeUseCase,
    VerifyTwoFactorSetupUseCase,
)
from src.depends import (
    CurrentSession,
    get_audit_log,
    get_client_info,
    get_current_session,
    get_password_hasher,
    get_two_factor_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/2fa", tags=["Two-Factor"])


class CodeRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=32, description="TOTP or backup code")


class PasswordConfirmationRequest(BaseModel):
    current_password: str = Field(..., description="Current account password")


@router.post("/setup", status_code=status.HTTP_200_OK, response_model=SetupTwoFactorResponse)
async def setup_two_factor(
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Start Two-Factor Setup

    Returns the secret, an otpauth:// payload for QR rendering and the
    backup codes. They are never shown again.

    Raises:
        - 409 Conflict: ALREADY_ENABLED
    """
    ip_address, user_agent = client
    use_case = SetupTwoFactorUseCase(uow, two_factor, audit_log)
    result = await use_case.execute(current.user_id, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/verify-setup", status_code=status.HTTP_200_OK, response_model=VerifySetupResponse)
async def verify_two_factor_setup(
    request: CodeRequest,
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Confirm Two-Factor Setup

    The first correct TOTP code enables 2FA. A wrong code answers
    verified=false.

    Raises:
        - 400 Bad Request: NOT_PENDING
        - 409 Conflict: ALREADY_ENABLED
    """
    ip_address, user_agent = client
    use_case = VerifyTwoFactorSetupUseCase(uow, two_factor, audit_log)
    result = await use_case.execute(current.user_id, request.code, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/verify", status_code=status.HTTP_200_OK, response_model=VerifyCodeResponse)
async def verify_two_factor_code(
    request: CodeRequest,
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Verify Two-Factor Code

    Step-up verification. Backup codes are consumed on use.

    Raises:
        - 400 Bad Request: NOT_ENABLED
    """
    ip_address, user_agent = client
    use_case = VerifyTwoFactorCodeUseCase(uow, two_factor, audit_log)
    result = await use_case.execute(current.user_id, request.code, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/disable", status_code=status.HTTP_200_OK, response_model=DisableTwoFactorResponse)
async def disable_two_factor(
    request: PasswordConfirmationRequest,
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Disable Two-Factor

    Requires the current password. Signs out every other device.

    Raises:
        - 401 Unauthorized: Wrong password
        - 400 Bad Request: NOT_ENABLED
    """
    ip_address, user_agent = client
    use_case = DisableTwoFactorUseCase(uow, hasher, audit_log)
    result = await use_case.execute(
        current.user_id, request.current_password, current.token, ip_address, user_agent
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/backup-codes", status_code=status.HTTP_200_OK, response_model=BackupCodesResponse)
async def regenerate_backup_codes(
    request: PasswordConfirmationRequest,
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Regenerate Backup Codes

    Replaces the whole set; old codes stop working.

    Raises:
        - 401 Unauthorized: Wrong password
        - 400 Bad Request: NOT_ENABLED
    """
    ip_address, user_agent = client
    use_case = RegenerateBackupCodesUseCase(uow, hasher, two_factor, audit_log)
    result = await use_case.execute(current.user_id, request.current_password, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
