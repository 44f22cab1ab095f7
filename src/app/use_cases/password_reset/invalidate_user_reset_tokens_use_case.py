"""
Invalidate User Reset Tokens Use Case

Administrative kill switch for a user's outstanding reset links.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType
from src.domain.errors import NotFoundError
from .dtos import InvalidateTokensResponse


class InvalidateUserResetTokensUseCase:
    def __init__(self, uow: UnitOfWork, audit_log: AuditLog):
        self.uow = uow
        self.audit_log = audit_log

    @guarded
    async def execute(self, user_id: UUID, performed_by: str = "admin") -> Result[InvalidateTokensResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(NotFoundError("USER_NOT_FOUND", "User not found"))

            invalidated = await self.uow.password_reset_tokens.invalidate_unused_by_user_id(
                user_id, utcnow()
            )
            await self.uow.commit()

        await self.audit_log.record(
            "password_reset_tokens_invalidated",
            True,
            user_id=user_id,
            details={"invalidated_tokens": invalidated, "performed_by": performed_by},
            event_type=AuditEventType.security,
        )
        return Return.ok(InvalidateTokensResponse(user_id=str(user_id), invalidated_tokens=invalidated))
