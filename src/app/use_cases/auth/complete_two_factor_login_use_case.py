"""
Complete Two-Factor Login Use Case

Second login step: exchanges a two-factor token plus a TOTP or backup code
for a session.
"""

from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token, sanitize_user_agent
from src.app.services.guard import guarded
from src.app.services.security_settings import SecuritySettings
from src.app.services.session_issuer import issue_session
from src.app.services.two_factor import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import TokenError, TwoFactorError, ValidationError
from src.app.use_cases.sessions.dtos import IssuedSession
from src.app.use_cases.two_factor.setup_two_factor_use_case import CONCURRENT_UPDATE
from .dtos import LoginResponse, UserInfo

INVALID_CHALLENGE = TokenError("Invalid or expired two-factor login token", "INVALID_2FA_TOKEN")


class CompleteTwoFactorLoginUseCase:
    """
    Business Rules:
    - The two-factor token is single-use and expires quickly
    - Each wrong code counts against the token; it is burned after the
      configured number of failures
    - A matched backup code is consumed in the same transaction that
      creates the session
    """

    def __init__(
        self,
        uow: UnitOfWork,
        two_factor: TwoFactorService,
        audit_log: AuditLog,
        settings: SecuritySettings,
    ):
        self.uow = uow
        self.two_factor = two_factor
        self.audit_log = audit_log
        self.settings = settings

    @guarded
    async def execute(
        self,
        two_factor_token: str,
        code: str,
        remember_me: Optional[bool] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LoginResponse]:
        if not two_factor_token or not code:
            return Return.err(
                ValidationError("MISSING_CODE", "Two-factor token and code are required")
            )

        user_agent = sanitize_user_agent(user_agent)
        now = utcnow()

        async with self.uow:
            challenge = await self.uow.two_factor_challenges.get_by_token_hash(
                hash_token(two_factor_token)
            )
            if challenge is None or not challenge.is_usable(now):
                await self._record(None, False, ip_address, user_agent, {"reason": "invalid_token"})
                return Return.err(INVALID_CHALLENGE)

            challenge_id = challenge.id
            user = await self.uow.users.get_by_id(challenge.user_id)
            if user is None or not user.is_active or not user.two_factor_enabled:
                await self._record(
                    challenge.user_id, False, ip_address, user_agent, {"reason": "user_ineligible"}
                )
                return Return.err(INVALID_CHALLENGE)

            user_id = user.id
            check = self.two_factor.check_code(
                user.two_factor_secret_encrypted, list(user.backup_code_hashes or []), code
            )

            if not check.verified:
                attempts = await self.uow.two_factor_challenges.record_failure(
                    challenge_id, self.settings.two_factor_max_attempts, now
                )
                await self.uow.commit()
                await self._record(
                    user_id,
                    False,
                    ip_address,
                    user_agent,
                    {
                        "reason": "invalid_code",
                        "failed_attempts": attempts,
                        "challenge_burned": attempts >= self.settings.two_factor_max_attempts,
                    },
                )
                return Return.err(TwoFactorError("INVALID_CODE", "Invalid verification code"))

            if not await self.uow.two_factor_challenges.consume(challenge_id, now):
                await self.uow.rollback()
                await self._record(user_id, False, ip_address, user_agent, {"reason": "token_reused"})
                return Return.err(INVALID_CHALLENGE)

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

            if remember_me is None:
                remember_me = challenge.remember_me
            user_info = UserInfo(id=str(user_id), email=user.email, two_factor_enabled=True)

            session, session_token = await issue_session(
                self.uow,
                user_id,
                self.settings.session_duration(remember_me),
                ip_address,
                user_agent,
                now,
            )
            await self.uow.users.update_last_login(user_id, now)
            await self.uow.commit()

        await self._record(
            user_id,
            True,
            ip_address,
            user_agent,
            {
                "method": check.method,
                "remaining_backup_codes": len(check.remaining_backup_code_hashes),
                "session_id": session.id,
            },
        )
        return Return.ok(
            LoginResponse(
                user=user_info,
                requires_2fa=False,
                session=IssuedSession(
                    session_id=str(session.id),
                    session_token=session_token,
                    expires_at=session.expires_at,
                ),
            )
        )

    async def _record(self, user_id, success, ip_address, user_agent, details):
        await self.audit_log.record(
            "two_factor_login",
            success,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details,
            event_type=AuditEventType.security if not success else AuditEventType.auth,
            severity=AuditSeverity.info if success else AuditSeverity.warn,
        )
