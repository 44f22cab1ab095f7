"""
Verify Two-Factor Setup Use Case

The first correct TOTP code turns 2FA on.
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
from .dtos import VerifySetupResponse
from .setup_two_factor_use_case import CONCURRENT_UPDATE


class VerifyTwoFactorSetupUseCase:
    """
    Business Rules:
    - Requires a pending (set up but not enabled) secret
    - Only TOTP codes are accepted here, not backup codes
    - A wrong code leaves the pending secret in place
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
    ) -> Result[VerifySetupResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))
            if user.two_factor_enabled:
                await self._record_rejection(user_id, "already_enabled", ip_address, user_agent)
                return Return.err(
                    TwoFactorError("ALREADY_ENABLED", "Two-factor authentication is already enabled")
                )
            if not user.two_factor_secret_encrypted:
                await self._record_rejection(user_id, "not_pending", ip_address, user_agent)
                return Return.err(TwoFactorError("NOT_PENDING", "Two-factor setup has not been started"))

            if not self.two_factor.verify_totp(user.two_factor_secret_encrypted, code):
                await self.audit_log.record(
                    "two_factor_enabled",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "invalid_code"},
                    event_type=AuditEventType.security,
                    severity=AuditSeverity.warn,
                )
                return Return.ok(VerifySetupResponse(verified=False, message="Invalid verification code"))

            updated = await self.uow.users.update_two_factor(
                user_id,
                expected_version=user.two_factor_version,
                enabled=True,
                secret_encrypted=user.two_factor_secret_encrypted,
                backup_code_hashes=list(user.backup_code_hashes or []),
            )
            if not updated:
                await self.uow.rollback()
                return Return.err(CONCURRENT_UPDATE)

            await self.uow.commit()

        await self.audit_log.record(
            "two_factor_enabled",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            event_type=AuditEventType.security,
        )
        return Return.ok(
            VerifySetupResponse(verified=True, message="Two-factor authentication enabled")
        )

    async def _record_rejection(self, user_id, reason, ip_address, user_agent):
        await self.audit_log.record(
            "two_factor_enabled",
            False,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": reason},
            event_type=AuditEventType.security,
        )
