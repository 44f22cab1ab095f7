"""
Verify Two-Factor Code Use Case

Step-up check for a user with 2FA enabled (TOTP or backup code).
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import NotFoundError, TwoFactorError
from .dtos import VerifyCodeResponse
from .setup_two_factor_use_case import CONCURRENT_UPDATE


class VerifyTwoFactorCodeUseCase:
    """
    Business Rules:
    - TOTP is tried first, then backup codes
    - A backup code works once; it is removed in the same conditional write
      that checks the credential version
    """

    def __init__(self, uow: UnitOfWork, two_factor: TwoFactorService, audit_log: AuditLog):
        self.uow = uow
        self.two_factor = two_factor
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        user_id: UUID,
        code: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[VerifyCodeResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))
            if not user.two_factor_enabled:
                await self.audit_log.record(
                    "two_factor_verification",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "not_enabled"},
                    event_type=AuditEventType.security,
                )
                return Return.err(
                    TwoFactorError("NOT_ENABLED", "Two-factor authentication is not enabled")
                )

            stored_hashes = list(user.backup_code_hashes or [])
            check = self.two_factor.check_code(user.two_factor_secret_encrypted, stored_hashes, code)

            if not check.verified:
                await self.audit_log.record(
                    "two_factor_verification",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "invalid_code"},
                    event_type=AuditEventType.security,
                    severity=AuditSeverity.warn,
                )
                return Return.ok(
                    VerifyCodeResponse(verified=False, remaining_backup_codes=len(stored_hashes))
                )

            if check.method == "backup_code":
                updated = await self.uow.users.update_two_factor(
                    user_id,
                    expected_version=user.two_factor_version,
                    enabled=True,
                    secret_encrypted=user.two_factor_secret_encrypted,
                    backup_code_hashes=check.remaining_backup_code_hashes,
                )
                if not updated:
                    await self.uow.rollback()
                    return Return.err(CONCURRENT_UPDATE)
                await self.uow.commit()

        remaining = len(check.remaining_backup_code_hashes)
        await self.audit_log.record(
            "two_factor_verification",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"method": check.method, "remaining_backup_codes": remaining},
            event_type=AuditEventType.security,
        )
        return Return.ok(
            VerifyCodeResponse(verified=True, method=check.method, remaining_backup_codes=remaining)
        )
