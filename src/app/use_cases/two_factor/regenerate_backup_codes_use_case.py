"""
Regenerate Backup Codes Use Case
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.passwords import PasswordHasher
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import AuthenticationError, NotFoundError, TwoFactorError
from .dtos import BackupCodesResponse
from .setup_two_factor_use_case import CONCURRENT_UPDATE


class RegenerateBackupCodesUseCase:
    """
    Business Rules:
    - Requires 2FA enabled and the current password
    - The whole previous set is replaced at once
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        two_factor: TwoFactorService,
        audit_log: AuditLog,
    ):
        self.uow = uow
        self.hasher = hasher
        self.two_factor = two_factor
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        user_id: UUID,
        current_password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[BackupCodesResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))

            if not self.hasher.verify(current_password, user.password_hash):
                await self.audit_log.record(
                    "two_factor_backup_codes_regenerated",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "invalid_password"},
                    event_type=AuditEventType.security,
                    severity=AuditSeverity.warn,
                )
                return Return.err(AuthenticationError("INVALID_CREDENTIALS", "Invalid password"))

            if not user.two_factor_enabled:
                await self.audit_log.record(
                    "two_factor_backup_codes_regenerated",
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

            backup_codes, backup_code_hashes = self.two_factor.generate_backup_codes()
            updated = await self.uow.users.update_two_factor(
                user_id,
                expected_version=user.two_factor_version,
                enabled=True,
                secret_encrypted=user.two_factor_secret_encrypted,
                backup_code_hashes=backup_code_hashes,
            )
            if not updated:
                await self.uow.rollback()
                return Return.err(CONCURRENT_UPDATE)

            await self.uow.commit()

        await self.audit_log.record(
            "two_factor_backup_codes_regenerated",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"backup_code_count": len(backup_codes)},
            event_type=AuditEventType.security,
        )
        return Return.ok(BackupCodesResponse(backup_codes=backup_codes))
