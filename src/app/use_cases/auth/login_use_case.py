"""
Login Use Case

Handles password authentication and either issues a session or starts a
two-factor challenge.
"""

from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import (
    SESSION_TOKEN_BYTES,
    generate_secure_token,
    hash_token,
    sanitize_user_agent,
)
from src.app.services.guard import guarded
from src.app.services.passwords import PasswordHasher
from src.app.services.rate_limiter import LOGIN_BY_EMAIL, LOGIN_BY_IP, RateLimiter
from src.app.services.security_settings import SecuritySettings
from src.app.services.session_issuer import issue_session
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity, TwoFactorChallenge
from src.domain.errors import AuthenticationError, RateLimitError, ValidationError
from src.app.use_cases.sessions.dtos import IssuedSession
from .dtos import LoginResponse, UserInfo

INVALID_CREDENTIALS = AuthenticationError("INVALID_CREDENTIALS", "Invalid email or password")


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Rate limited per email and per IP
    - Constant-time password comparison; a bcrypt check runs even when the
      user does not exist
    - Unknown user, wrong password and disabled account share one error;
      the real cause goes to the audit log only
    - Email must be verified
    - With 2FA enabled no session is created; a short-lived, single-use
      two-factor token is returned instead
    - Remember-me sessions last 30 days, others 24 hours
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        rate_limiter: RateLimiter,
        audit_log: AuditLog,
        settings: SecuritySettings,
    ):
        self.uow = uow
        self.hasher = hasher
        self.rate_limiter = rate_limiter
        self.audit_log = audit_log
        self.settings = settings

    @guarded
    async def execute(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password
            remember_me: Issue a long-lived session
            ip_address: Client IP, bound to the session
            user_agent: Client user agent, bound to the session

        Returns:
            Result with LoginResponse, or Error
        """
        normalized_email = (email or "").strip().lower()
        if not normalized_email or not password:
            return Return.err(ValidationError("MISSING_CREDENTIALS", "Email and password are required"))

        user_agent = sanitize_user_agent(user_agent)

        decisions = [await self.rate_limiter.check_and_consume(normalized_email, LOGIN_BY_EMAIL)]
        if ip_address:
            decisions.append(await self.rate_limiter.check_and_consume(ip_address, LOGIN_BY_IP))
        rejected = [d for d in decisions if not d.allowed]
        if rejected:
            wait_time_ms = max(d.wait_time_ms or 0 for d in rejected)
            await self.audit_log.record(
                "login_rate_limited",
                False,
                email=normalized_email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"wait_time_ms": wait_time_ms},
                event_type=AuditEventType.security,
                severity=AuditSeverity.warn,
            )
            return Return.err(
                RateLimitError(
                    "Too many login attempts. Please try again later.",
                    wait_time_ms,
                    max(d.reset_time for d in rejected),
                )
            )

        async with self.uow:
            user = await self.uow.users.get_by_email(normalized_email)

            reason = None
            if user is None:
                self.hasher.dummy_verify(password)
                reason = "user_not_found"
            elif not self.hasher.verify(password, user.password_hash):
                reason = "invalid_password"
            elif not user.is_active:
                reason = "user_disabled"

            if reason:
                await self._record_failure(user, normalized_email, reason, ip_address, user_agent)
                return Return.err(INVALID_CREDENTIALS)

            if not user.email_verified:
                await self._record_failure(
                    user, normalized_email, "email_not_verified", ip_address, user_agent
                )
                return Return.err(
                    AuthenticationError(
                        "EMAIL_NOT_VERIFIED", "Please verify your email address before logging in"
                    )
                )

            now = utcnow()
            user_info = UserInfo(
                id=str(user.id), email=user.email, two_factor_enabled=user.two_factor_enabled
            )

            if user.two_factor_enabled:
                two_factor_token = generate_secure_token(SESSION_TOKEN_BYTES)
                challenge = TwoFactorChallenge(
                    user_id=user.id,
                    token_hash=hash_token(two_factor_token),
                    remember_me=remember_me,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    expires_at=now + self.settings.two_factor_challenge_ttl,
                    created_at=now,
                )
                await self.uow.two_factor_challenges.create(challenge)
                await self.uow.commit()

                await self.audit_log.record(
                    "login",
                    True,
                    user_id=user.id,
                    email=normalized_email,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"requires_2fa": True, "remember_me": remember_me},
                )
                return Return.ok(
                    LoginResponse(
                        user=user_info,
                        requires_2fa=True,
                        two_factor_token=two_factor_token,
                        two_factor_expires_at=challenge.expires_at,
                    )
                )

            session, session_token = await issue_session(
                self.uow,
                user.id,
                self.settings.session_duration(remember_me),
                ip_address,
                user_agent,
                now,
            )
            await self.uow.users.update_last_login(user.id, now)
            await self.uow.commit()

        await self.audit_log.record(
            "login",
            True,
            user_id=user.id,
            email=normalized_email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"requires_2fa": False, "remember_me": remember_me, "session_id": session.id},
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

    async def _record_failure(self, user, email, reason, ip_address, user_agent):
        await self.audit_log.record(
            "login",
            False,
            user_id=user.id if user else None,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": reason},
            severity=AuditSeverity.warn,
        )
