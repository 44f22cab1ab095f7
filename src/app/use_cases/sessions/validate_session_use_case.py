"""
Validate Session Use Case

Resolves a bearer session token to its user for authenticated requests.
"""

from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token, sanitize_user_agent
from src.app.services.guard import guarded
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import TokenError
from .dtos import SessionValidationResponse

INVALID_SESSION = TokenError("Invalid or expired session", "INVALID_SESSION")


class ValidateSessionUseCase:
    """
    Business Rules:
    - Session must be active and unexpired
    - A session whose user is gone or disabled is revoked
    - With strict binding on, an IP or user agent change revokes the session
    - needs_refresh is set once less than the threshold share of the
      lifetime remains
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog, settings: SecuritySettings):
        self.uow = uow
        self.audit_log = audit_log
        self.settings = settings

    @guarded
    async def execute(
        self,
        session_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[SessionValidationResponse]:
        if not session_token:
            return Return.err(INVALID_SESSION)

        now = utcnow()
        async with self.uow:
            session = await self.uow.sessions.get_by_token_hash(hash_token(session_token))
            if session is None or not session.is_valid(now):
                return Return.err(INVALID_SESSION)

            user = await self.uow.users.get_by_id(session.user_id)
            reason = None
            if user is None or not user.is_active:
                reason = "user_inactive"
            elif self.settings.session_strict_binding and self._binding_changed(
                session, ip_address, user_agent
            ):
                reason = "binding_mismatch"

            if reason:
                session_id, user_id = session.id, session.user_id
                await self.uow.sessions.revoke_by_id(session_id, now)
                await self.uow.commit()
                await self.audit_log.record(
                    "session_revoked",
                    True,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"session_id": session_id, "reason": reason},
                    event_type=AuditEventType.security,
                    severity=AuditSeverity.warn,
                )
                return Return.err(INVALID_SESSION)

            return Return.ok(
                SessionValidationResponse(
                    session_id=str(session.id),
                    user_id=str(session.user_id),
                    expires_at=session.expires_at,
                    needs_refresh=session.needs_refresh(self.settings.session_refresh_threshold, now),
                )
            )

    @staticmethod
    def _binding_changed(session, ip_address, user_agent) -> bool:
        if session.ip_address and session.ip_address != ip_address:
            return True
        return bool(session.user_agent) and session.user_agent != sanitize_user_agent(user_agent)
