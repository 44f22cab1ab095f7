"""
List Sessions Use Case
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.crypto import hash_token, timing_safe_equal
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from .dtos import ActiveSession, ListSessionsResponse


class ListSessionsUseCase:
    """Active sessions of a user, newest first, flagging the caller's own."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @guarded
    async def execute(
        self, user_id: UUID, current_session_token: Optional[str] = None
    ) -> Result[ListSessionsResponse]:
        current_hash = hash_token(current_session_token) if current_session_token else None

        async with self.uow:
            sessions = await self.uow.sessions.get_active_by_user_id(user_id, utcnow())

            return Return.ok(
                ListSessionsResponse(
                    sessions=[
                        ActiveSession(
                            session_id=str(s.id),
                            ip_address=s.ip_address,
                            user_agent=s.user_agent,
                            created_at=s.created_at,
                            expires_at=s.expires_at,
                            is_current=timing_safe_equal(s.token_hash, current_hash),
                        )
                        for s in sessions
                    ]
                )
            )
