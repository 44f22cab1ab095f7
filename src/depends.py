from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from libs.result import Error
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork, build_unit_of_work_factory
from src.api.error import ClientError, to_http_error
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import RecordSigner, SecretCipher
from src.app.services.notifier import LoggingResetNotifier, ResetNotifier
from src.app.services.passwords import PasswordHasher, PasswordPolicy
from src.app.services.rate_limiter import RateLimiter, default_policies
from src.app.services.security_settings import SecuritySettings
from src.app.services.two_factor import TwoFactorService
from src.app.use_cases.sessions import ValidateSessionUseCase
from src.domain.errors import TokenError

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Process-wide components, built once and injected through the getters below
unit_of_work_factory = build_unit_of_work_factory(AsyncSessionLocal)
settings = SecuritySettings.from_config(ApplicationConfig)
audit_log = AuditLog(
    unit_of_work_factory,
    RecordSigner(ApplicationConfig.SECRET_KEY),
    timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS,
)
rate_limiter = RateLimiter(
    unit_of_work_factory,
    default_policies(settings),
    audit_log,
    timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS,
)
password_hasher = PasswordHasher(ApplicationConfig.BCRYPT_ROUNDS)
password_policy = PasswordPolicy(
    min_length=ApplicationConfig.PASSWORD_MIN_LENGTH,
    min_character_classes=ApplicationConfig.PASSWORD_MIN_CHARACTER_CLASSES,
)
two_factor_service = TwoFactorService(
    SecretCipher(ApplicationConfig.SECRET_KEY),
    issuer=settings.totp_issuer,
    valid_window=settings.totp_valid_window,
    backup_code_count=settings.backup_code_count,
)
reset_notifier = LoggingResetNotifier()

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_settings() -> SecuritySettings:
    return settings


def get_audit_log() -> AuditLog:
    return audit_log


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def get_password_hasher() -> PasswordHasher:
    return password_hasher


def get_password_policy() -> PasswordPolicy:
    return password_policy


def get_two_factor_service() -> TwoFactorService:
    return two_factor_service


def get_reset_notifier() -> ResetNotifier:
    return reset_notifier


def get_client_info(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """(ip_address, user_agent) of the caller"""
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials if credentials else None


@dataclass
class CurrentSession:
    token: str
    session_id: UUID
    user_id: UUID
    expires_at: datetime
    needs_refresh: bool


async def get_current_session(
    token: Optional[str] = Depends(get_bearer_token),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow=Depends(get_unit_of_work),
    audit: AuditLog = Depends(get_audit_log),
    security_settings: SecuritySettings = Depends(get_settings),
) -> CurrentSession:
    """
    Dependency to resolve the bearer session token from the Authorization header.

    Raises:
        ClientError: 401 if the token is missing, unknown, revoked or expired
    """
    if not token:
        raise ClientError(
            Error("UNAUTHORIZED", "Session token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    ip_address, user_agent = client
    result = await ValidateSessionUseCase(uow, audit, security_settings).execute(
        token, ip_address, user_agent
    )
    if result.is_err():
        if isinstance(result.error, TokenError):
            raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise to_http_error(result.error)

    return CurrentSession(
        token=token,
        session_id=UUID(result.value.session_id),
        user_id=UUID(result.value.user_id),
        expires_at=result.value.expires_at,
        needs_refresh=result.value.needs_refresh,
    )
