"""
Password Reset API Routes

Unauthenticated endpoints for the reset-by-email flow.
"""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import to_http_error
from src.app.services.audit_log import AuditLog
from src.app.services.notifier import ResetNotifier
from src.app.services.passwords import PasswordHasher, PasswordPolicy
from src.app.services.rate_limiter import RateLimiter
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.password_reset import (
    CompletePasswordResetUseCase,
    CompleteResetResponse,
    InitiatePasswordResetUseCase,
    InitiateResetResponse,
    ValidateResetTokenUseCase,
    ValidateTokenResponse,
)
from src.depends import (
    get_audit_log,
    get_client_info,
    get_password_hasher,
    get_password_policy,
    get_rate_limiter,
    get_reset_notifier,
    get_settings,
    get_unit_of_work,
)

router = APIRouter(prefix="/password-reset", tags=["Password Reset"])


class PasswordResetRequest(BaseModel):
    """Request password reset HTTP payload"""

    email: EmailStr = Field(..., description="Account email address")


class ValidateTokenRequest(BaseModel):
    token: str = Field(..., description="Reset token from the emailed link")


class CompleteResetRequest(BaseModel):
    """Complete password reset HTTP payload"""

    token: str = Field(..., description="Reset token from the emailed link")
    new_password: str = Field(..., description="New password")
    confirm_password: str = Field(..., description="New password, repeated")


@router.post("/request", status_code=status.HTTP_200_OK, response_model=InitiateResetResponse)
async def request_password_reset(
    request: PasswordResetRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    audit_log: AuditLog = Depends(get_audit_log),
    notifier: ResetNotifier = Depends(get_reset_notifier),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Request Password Reset

    Always answers with the same message whether or not the account exists.

    Raises:
        - 422 Unprocessable Entity: Malformed email (handled by FastAPI)
        - 429 Too Many Requests: Email or IP rate limit hit (Retry-After header)
        - 500 Internal Server Error: Server error
    """
    ip_address, user_agent = client
    use_case = InitiatePasswordResetUseCase(uow, rate_limiter, audit_log, notifier, settings)
    result = await use_case.execute(request.email, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/validate", status_code=status.HTTP_200_OK, response_model=ValidateTokenResponse)
async def validate_reset_token(
    request: ValidateTokenRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Validate Reset Token

    Returns is_valid plus every failed check; never consumes the token.
    """
    ip_address, user_agent = client
    use_case = ValidateResetTokenUseCase(uow, audit_log, settings)
    result = await use_case.execute(request.token, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/complete", status_code=status.HTTP_200_OK, response_model=CompleteResetResponse)
async def complete_password_reset(
    request: CompleteResetRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
    hasher: PasswordHasher = Depends(get_password_hasher),
    policy: PasswordPolicy = Depends(get_password_policy),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Complete Password Reset

    Sets the new password and signs the user out everywhere.

    Raises:
        - 400 Bad Request: PASSWORD_MISMATCH, WEAK_PASSWORD, INVALID_TOKEN
        - 500 Internal Server Error: Server error
    """
    ip_address, user_agent = client
    use_case = CompletePasswordResetUseCase(uow, audit_log, hasher, policy, settings)
    result = await use_case.execute(
        request.token,
        request.new_password,
        request.confirm_password,
        ip_address,
        user_agent,
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
