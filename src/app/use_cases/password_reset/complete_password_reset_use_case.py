"""
Complete Password Reset Use Case

Consumes a reset token, sets the new password and revokes every session.
"""

from typing import List, Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token, token_hash_prefix
from src.app.services.guard import guarded
from src.app.services.passwords import PasswordHasher, PasswordPolicy
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import TokenError, ValidationError
from .dtos import RESET_COMPLETED_MESSAGE, CompleteResetResponse
from .token_checks import TOKEN_NOT_FOUND, reset_token_errors


class CompletePasswordResetUseCase:
    """
    Use case for completing a password reset.

    Business Rules:
    - Password confirmation and strength are checked before the token
    - Token must pass every validation check
    - Token is marked used with a conditional update; a concurrent
      completion with the same token fails
    - Other outstanding tokens of the user are invalidated
    - ALL active sessions of the user are revoked
    - All of the above commit together or not at all
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_log: AuditLog,
        hasher: PasswordHasher,
        policy: PasswordPolicy,
        settings: SecuritySettings,
    ):
        self.uow = uow
        self.audit_log = audit_log
        self.hasher = hasher
        self.policy = policy
        self.settings = settings

    @guarded
    async def execute(
        self,
        token: str,
        new_password: str,
        confirm_password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[CompleteResetResponse]:
        if new_password != confirm_password:
            return Return.err(ValidationError("PASSWORD_MISMATCH", "Passwords do not match"))

        violations = self.policy.violations(new_password)
        if violations:
            return Return.err(
                ValidationError("WEAK_PASSWORD", "; ".join(violations), {"violations": violations})
            )

        token = token or ""
        token_hash = hash_token(token)
        password_hash = self.hasher.hash(new_password)
        now = utcnow()

        async with self.uow:
            record = await self.uow.password_reset_tokens.get_by_token_hash(token_hash)
            errors = reset_token_errors(record, token, ip_address, user_agent, self.settings, now)
            if errors:
                return await self._fail(record.user_id if record else None, token_hash, errors, ip_address, user_agent)

            user_id = record.user_id
            token_id = record.id

            if not await self.uow.password_reset_tokens.mark_used(token_id, now):
                await self.uow.rollback()
                return await self._fail(
                    user_id, token_hash, ["Token has already been used"], ip_address, user_agent
                )

            user = await self.uow.users.get_by_id(user_id)
            if user is None or not user.is_active:
                await self.uow.rollback()
                return await self._fail(user_id, token_hash, [TOKEN_NOT_FOUND], ip_address, user_agent)
            email = user.email

            await self.uow.users.update_password(user_id, password_hash)
            await self.uow.password_reset_tokens.invalidate_unused_by_user_id(user_id, now)
            revoked_sessions = await self.uow.sessions.revoke_all_by_user_id(user_id, now)

            await self.uow.commit()

        await self.audit_log.record(
            "password_reset_completed",
            True,
            user_id=user_id,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={
                "token_hash_prefix": token_hash_prefix(token_hash),
                "revoked_sessions": revoked_sessions,
                "strength": self.policy.summarize(new_password),
            },
            event_type=AuditEventType.security,
        )

        return Return.ok(
            CompleteResetResponse(
                success=True,
                message=RESET_COMPLETED_MESSAGE,
                revoked_sessions=revoked_sessions,
            )
        )

    async def _fail(self, user_id, token_hash: str, errors: List[str], ip_address, user_agent):
        await self.audit_log.record(
            "password_reset_completed",
            False,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"token_hash_prefix": token_hash_prefix(token_hash), "errors": errors},
            event_type=AuditEventType.security,
            severity=AuditSeverity.warn,
        )
        return Return.err(TokenError())
