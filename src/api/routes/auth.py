"""
Authentication API Routes

Login (password and two-factor step) and logout.
"""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import to_http_error
from src.app.services.audit_log import AuditLog
from src.app.services.passwords import PasswordHasher
from src.app.services.rate_limiter import RateLimiter
from src.app.services.security_settings import SecuritySettings
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import CompleteTwoFactorLoginUseCase, LoginResponse, LoginUseCase
from src.app.use_cases.sessions import (
    LogoutAllDevicesUseCase,
    LogoutAllResponse,
    LogoutResponse,
    LogoutUseCase,
)
from src.depends import (
    CurrentSession,
    get_audit_log,
    get_bearer_token,
    get_client_info,
    get_current_session,
    get_password_hasher,
    get_rate_limiter,
    get_settings,
    get_two_factor_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Email is not validated as EmailStr here so malformed input gets the
    same INVALID_CREDENTIALS answer as an unknown account.
    """

    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    remember_me: bool = Field(False, description="Issue a 30-day session instead of 24 hours")


class TwoFactorLoginRequest(BaseModel):
    two_factor_token: str = Field(..., description="Token returned by /auth/login")
    code: str = Field(..., description="TOTP code or backup code")
    remember_me: Optional[bool] = Field(None, description="Overrides the choice made at login")


class LogoutAllRequest(BaseModel):
    keep_current: bool = Field(True, description="Keep the session making this request")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    audit_log: AuditLog = Depends(get_audit_log),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    User Login

    Returns a session, or a two-factor token when 2FA is enabled.

    Raises:
        - 400 Bad Request: Missing credentials
        - 401 Unauthorized: INVALID_CREDENTIALS, EMAIL_NOT_VERIFIED
        - 429 Too Many Requests: Login rate limit hit
        - 500 Internal Server Error: Server error
    """
    ip_address, user_agent = client
    use_case = LoginUseCase(uow, hasher, rate_limiter, audit_log, settings)
    result = await use_case.execute(
        request.email, request.password, request.remember_me, ip_address, user_agent
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/login/2fa", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login_two_factor(
    request: TwoFactorLoginRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
    audit_log: AuditLog = Depends(get_audit_log),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Complete Two-Factor Login

    Raises:
        - 400 Bad Request: INVALID_CODE
        - 401 Unauthorized: INVALID_2FA_TOKEN (unknown, expired, used or burned)
        - 500 Internal Server Error: Server error
    """
    ip_address, user_agent = client
    use_case = CompleteTwoFactorLoginUseCase(uow, two_factor, audit_log, settings)
    result = await use_case.execute(
        request.two_factor_token, request.code, request.remember_me, ip_address, user_agent
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Logout

    Revokes the bearer session. Idempotent: always 200.
    """
    ip_address, user_agent = client
    result = await LogoutUseCase(uow, audit_log).execute(token or "", ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/logout-all", status_code=status.HTTP_200_OK, response_model=LogoutAllResponse)
async def logout_all_devices(
    request: Optional[LogoutAllRequest] = None,
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Logout From All Devices

    Raises:
        - 401 Unauthorized: Invalid or expired session
    """
    ip_address, user_agent = client
    keep_current = request.keep_current if request else True
    use_case = LogoutAllDevicesUseCase(uow, audit_log)
    result = await use_case.execute(
        current.user_id,
        current.token if keep_current else None,
        ip_address,
        user_agent,
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
