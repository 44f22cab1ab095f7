"""
Refresh Session Use Case

Rotates a session: a new token with the same lifetime replaces the old one.
"""

from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import hash_token
from src.app.services.guard import guarded
from src.app.services.session_issuer import issue_session
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from .dtos import IssuedSession, RefreshSessionResponse
from .validate_session_use_case import INVALID_SESSION


class RefreshSessionUseCase:
    """
    Business Rules:
    - Only a valid session of an active user can be refreshed
    - The old session is revoked in the same transaction; refreshing the
      same token twice yields one new session only
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
    ) -> Result[RefreshSessionResponse]:
        if not session_token:
            return Return.err(INVALID_SESSION)

        now = utcnow()
        async with self.uow:
            old = await self.uow.sessions.get_by_token_hash(hash_token(session_token))
            if old is None or not old.is_valid(now):
                return Return.err(INVALID_SESSION)

            user = await self.uow.users.get_by_id(old.user_id)
            if user is None or not user.is_active:
                return Return.err(INVALID_SESSION)

            old_id, user_id = old.id, old.user_id
            duration = old.expires_at - old.created_at

            if not await self.uow.sessions.revoke_by_id(old_id, now):
                await self.uow.rollback()
                return Return.err(INVALID_SESSION)

            session, token = await issue_session(
                self.uow, user_id, duration, ip_address, user_agent, now
            )
            await self.uow.commit()

        await self.audit_log.record(
            "session_refreshed",
            True,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"previous_session_id": old_id, "session_id": session.id},
        )
        return Return.ok(
            RefreshSessionResponse(
                session=IssuedSession(
                    session_id=str(session.id),
                    session_token=token,
                    expires_at=session.expires_at,
                ),
                previous_session_id=str(old_id),
            )
        )
