"""
Setup Two-Factor Use Case

Generates a TOTP secret and backup codes. 2FA stays off until the first
code is verified.
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType
from src.domain.errors import NotFoundError, SecurityError, TwoFactorError
from .dtos import SetupTwoFactorResponse

CONCURRENT_UPDATE = SecurityError(
    "Two-factor settings changed during the request, please retry", "CONCURRENT_UPDATE"
)


class SetupTwoFactorUseCase:
    """
    Business Rules:
    - Not allowed while 2FA is enabled
    - Secret stored encrypted, backup codes stored hashed
    - Re-running setup before verification replaces the pending secret
    """

    def __init__(self, uow: UnitOfWork, two_factor: TwoFactorService, audit_log: AuditLog):
        self.uow = uow
        self.two_factor = two_factor
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        user_id: UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[SetupTwoFactorResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))

            if user.two_factor_enabled:
                await self.audit_log.record(
                    "two_factor_setup",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "already_enabled"},
                    event_type=AuditEventType.security,
                )
                return Return.err(
                    TwoFactorError("ALREADY_ENABLED", "Two-factor authentication is already enabled")
                )

            email = user.email
            secret = self.two_factor.generate_secret()
            backup_codes, backup_code_hashes = self.two_factor.generate_backup_codes()

            updated = await self.uow.users.update_two_factor(
                user_id,
                expected_version=user.two_factor_version,
                enabled=False,
                secret_encrypted=self.two_factor.encrypt_secret(secret),
                backup_code_hashes=backup_code_hashes,
            )
            if not updated:
                await self.uow.rollback()
                return Return.err(CONCURRENT_UPDATE)

            await self.uow.commit()

        await self.audit_log.record(
            "two_factor_setup",
            True,
            user_id=user_id,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"backup_code_count": len(backup_codes)},
            event_type=AuditEventType.security,
        )

        return Return.ok(
            SetupTwoFactorResponse(
                secret=secret,
                qr_payload=self.two_factor.provisioning_uri(secret, email),
                backup_codes=backup_codes,
            )
        )
