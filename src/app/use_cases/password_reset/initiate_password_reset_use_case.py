"""
Initiate Password Reset Use Case

Issues a single-use reset token and hands it to the notifier.
"""

import logging
from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import (
    generate_secure_token,
    hash_token,
    sanitize_user_agent,
    token_hash_prefix,
)
from src.app.services.guard import guarded
from src.app.services.notifier import ResetNotifier
from src.app.services.rate_limiter import RESET_BY_EMAIL, RESET_BY_IP, RateLimiter
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity, PasswordResetToken
from src.domain.errors import RateLimitError, ValidationError
from .dtos import GENERIC_RESET_MESSAGE, InitiateResetResponse

logger = logging.getLogger(__name__)


class InitiatePasswordResetUseCase:
    """
    Use case for requesting a password reset.

    Business Rules:
    - Rate limited per email and per IP before anything else happens
    - Same response for existing, unknown and disabled accounts
    - 512-bit token; only its SHA-256 hash is stored
    - Issuing a token invalidates every other unused token of the user
    - Token expires after the configured TTL (15 minutes by default)
    - The plaintext token goes to the notifier only, never to logs or audit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        audit_log: AuditLog,
        notifier: ResetNotifier,
        settings: SecuritySettings,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.audit_log = audit_log
        self.notifier = notifier
        self.settings = settings

    @guarded
    async def execute(
        self,
        email: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[InitiateResetResponse]:
        normalized_email = (email or "").strip().lower()
        if not normalized_email or "@" not in normalized_email:
            return Return.err(ValidationError("INVALID_EMAIL", "A valid email address is required"))

        user_agent = sanitize_user_agent(user_agent)

        decisions = {"email": await self.rate_limiter.check_and_consume(normalized_email, RESET_BY_EMAIL)}
        if ip_address:
            decisions["ip"] = await self.rate_limiter.check_and_consume(ip_address, RESET_BY_IP)

        rejected = {kind: d for kind, d in decisions.items() if not d.allowed}
        if rejected:
            wait_time_ms = max(d.wait_time_ms or 0 for d in rejected.values())
            reset_time = max(d.reset_time for d in rejected.values())
            await self.audit_log.record(
                "password_reset_rate_limited",
                False,
                email=normalized_email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"limited_by": sorted(rejected), "wait_time_ms": wait_time_ms},
                event_type=AuditEventType.security,
                severity=AuditSeverity.warn,
            )
            return Return.err(
                RateLimitError(
                    "Too many password reset requests. Please try again later.",
                    wait_time_ms,
                    reset_time,
                )
            )

        response = InitiateResetResponse(
            success=True,
            message=GENERIC_RESET_MESSAGE,
            remaining_requests=min(d.remaining_requests for d in decisions.values()),
            reset_time=max(d.reset_time for d in decisions.values()),
        )

        async with self.uow:
            user = await self.uow.users.get_by_email(normalized_email)

            if user is None or not user.is_active:
                # Spend the token work anyway so both paths cost about the same
                hash_token(generate_secure_token())
                await self.audit_log.record(
                    "password_reset_requested",
                    False,
                    user_id=user.id if user else None,
                    email=normalized_email,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={
                        "reason": "user_not_found" if user is None else "user_disabled",
                        "token_hash_prefix": None,
                        "invalidated_tokens": 0,
                    },
                )
                return Return.ok(response)

            now = utcnow()
            token = generate_secure_token()
            token_hash = hash_token(token)

            invalidated = await self.uow.password_reset_tokens.invalidate_unused_by_user_id(user.id, now)
            reset_token = PasswordResetToken(
                user_id=user.id,
                token_hash=token_hash,
                ip_address=ip_address,
                user_agent=user_agent,
                expires_at=now + self.settings.reset_token_ttl,
                created_at=now,
                updated_at=now,
            )
            await self.uow.password_reset_tokens.create(reset_token)
            await self.uow.commit()

        try:
            await self.notifier.send_reset(
                user.email,
                token,
                f"{self.settings.reset_url_base}?token={token}",
                reset_token.expires_at,
            )
        except Exception:
            logger.exception("Reset notifier failed for user %s", user.id)

        await self.audit_log.record(
            "password_reset_requested",
            True,
            user_id=user.id,
            email=normalized_email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={
                "reason": None,
                "token_hash_prefix": token_hash_prefix(token_hash),
                "invalidated_tokens": invalidated,
            },
        )
        return Return.ok(response)
