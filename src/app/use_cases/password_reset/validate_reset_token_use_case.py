"""
Validate Reset Token Use Case

Lets a client check a reset link before showing the new-password form.
"""

import logging
from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token, token_hash_prefix
from src.app.services.guard import guarded
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from .dtos import TokenData, ValidateTokenResponse
from .token_checks import reset_token_errors

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Token validation failed"


class ValidateResetTokenUseCase:
    """
    Business Rules:
    - Lookup by SHA-256 hash, then timing-safe re-compare
    - Reports every failed check (format, used, expired, binding)
    - Read-only: validating never consumes the token
    - A store failure reports the token as invalid
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog, settings: SecuritySettings):
        self.uow = uow
        self.audit_log = audit_log
        self.settings = settings

    @guarded
    async def execute(
        self,
        token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[ValidateTokenResponse]:
        token = token or ""
        token_hash = hash_token(token)
        now = utcnow()

        try:
            async with self.uow:
                record = await self.uow.password_reset_tokens.get_by_token_hash(token_hash)
        except Exception:
            logger.exception("Reset token lookup failed")
            record = None
            errors = [VALIDATION_FAILED]
        else:
            errors = reset_token_errors(record, token, ip_address, user_agent, self.settings, now)

        is_valid = not errors
        await self.audit_log.record(
            "password_reset_token_validation",
            is_valid,
            user_id=record.user_id if record else None,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"token_hash_prefix": token_hash_prefix(token_hash), "errors": errors},
        )

        token_data = None
        if is_valid:
            token_data = TokenData(
                user_id=str(record.user_id),
                expires_at=record.expires_at,
                time_to_expiry_ms=record.time_to_expiry_ms(now),
            )

        return Return.ok(ValidateTokenResponse(is_valid=is_valid, errors=errors, token_data=token_data))
