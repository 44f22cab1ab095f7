"""
Get Security Stats Use Case
"""

from datetime import timedelta

from libs.result import Result, Return
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from .dtos import SecurityStatsResponse

FAILED_RESET_ACTIONS = (
    "password_reset_rate_limited",
    "password_reset_token_validation",
    "password_reset_completed",
)


class GetSecurityStatsUseCase:
    """Point-in-time counters for the admin dashboard (failures: last hour)."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @guarded
    async def execute(self) -> Result[SecurityStatsResponse]:
        now = utcnow()
        async with self.uow:
            return Return.ok(
                SecurityStatsResponse(
                    active_reset_tokens=await self.uow.password_reset_tokens.count_active(now),
                    recent_failed_reset_attempts=await self.uow.audit_events.count_failures_since(
                        FAILED_RESET_ACTIONS, now - timedelta(hours=1)
                    ),
                    blocked_identities=await self.uow.rate_limit_counters.count_blocked(now),
                    active_sessions=await self.uow.sessions.count_active(now),
                )
            )
