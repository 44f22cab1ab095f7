"""
Logout Use Cases

Single-session logout and sign-out from every device.
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType
from .dtos import LogoutAllResponse, LogoutResponse


class LogoutUseCase:
    """
    Business Rules:
    - Idempotent: unknown or already revoked tokens still succeed
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog):
        self.uow = uow
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        session_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LogoutResponse]:
        user_id = None
        revoked = False

        if session_token:
            async with self.uow:
                session = await self.uow.sessions.get_by_token_hash(hash_token(session_token))
                if session is not None:
                    user_id = session.user_id
                    revoked = await self.uow.sessions.revoke_by_id(session.id, utcnow())
                    await self.uow.commit()

        await self.audit_log.record(
            "logout",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"revoked": revoked},
        )
        return Return.ok(LogoutResponse(success=True, revoked=revoked))


class LogoutAllDevicesUseCase:
    """
    Business Rules:
    - Revokes every active session of the user
    - The caller's own session survives when except_session_token is given
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog):
        self.uow = uow
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        user_id: UUID,
        except_session_token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LogoutAllResponse]:
        now = utcnow()
        async with self.uow:
            kept = None
            if except_session_token:
                kept = await self.uow.sessions.get_by_token_hash(hash_token(except_session_token))

            if kept is not None and kept.user_id == user_id:
                revoked = await self.uow.sessions.revoke_all_except_session(user_id, kept.id, now)
            else:
                revoked = await self.uow.sessions.revoke_all_by_user_id(user_id, now)

            await self.uow.commit()

        await self.audit_log.record(
            "logout_all_devices",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"revoked_sessions": revoked, "kept_current": kept is not None and kept.user_id == user_id},
            event_type=AuditEventType.security,
        )
        return Return.ok(LogoutAllResponse(success=True, revoked_sessions=revoked))
