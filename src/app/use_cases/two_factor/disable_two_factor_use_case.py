"""
Disable Two-Factor Use Case

Security downgrade: requires the current password and signs out other devices.
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token
from src.app.services.guard import guarded
from src.app.services.passwords import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import AuthenticationError, NotFoundError, TwoFactorError
from .dtos import DisableTwoFactorResponse
from .setup_two_factor_use_case import CONCURRENT_UPDATE


class DisableTwoFactorUseCase:
    """
    Business Rules:
    - Current password must be re-verified
    - Secret and backup codes are cleared together
    - Every other session of the user is revoked; the caller's session
      (keep_session_token) survives
    - Audited as a critical security event
    """

    def __init__(self, uow: UnitOfWork, hasher: PasswordHasher, audit_log: AuditLog):
        self.uow = uow
        self.hasher = hasher
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        user_id: UUID,
        current_password: str,
        keep_session_token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[DisableTwoFactorResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))

            if not self.hasher.verify(current_password, user.password_hash):
                await self.audit_log.record(
                    "two_factor_disabled",
                    False,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "invalid_password"},
                    event_type=AuditEventType.security,
                    severity=AuditSeverity.warn,
                )
                return Return.err(AuthenticationError("INVALID_CREDENTIALS", "Invalid password"))

            if not user.two_factor_enabled and not user.two_factor_secret_encrypted:
                await self.audit_log.record(
                    "two_factor_disabled",
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

            email = user.email
            updated = await self.uow.users.update_two_factor(
                user_id,
                expected_version=user.two_factor_version,
                enabled=False,
                secret_encrypted=None,
                backup_code_hashes=[],
            )
            if not updated:
                await self.uow.rollback()
                return Return.err(CONCURRENT_UPDATE)

            now = utcnow()
            kept = None
            if keep_session_token:
                kept = await self.uow.sessions.get_by_token_hash(hash_token(keep_session_token))
            if kept is not None and kept.user_id == user_id:
                revoked = await self.uow.sessions.revoke_all_except_session(user_id, kept.id, now)
            else:
                revoked = await self.uow.sessions.revoke_all_by_user_id(user_id, now)

            await self.uow.commit()

        await self.audit_log.record(
            "two_factor_disabled",
            True,
            user_id=user_id,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"revoked_sessions": revoked},
            event_type=AuditEventType.security,
            severity=AuditSeverity.critical,
        )
        return Return.ok(DisableTwoFactorResponse(disabled=True, revoked_sessions=revoked))
