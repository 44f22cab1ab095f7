"""
Get Audit Stats Use Case
"""

from libs.result import Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ValidationError
from .dtos import AuditStatsResponse


class GetAuditStatsUseCase:
    """Outcome, category and severity counts over the entries matching a filter."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @guarded
    async def execute(self, criteria: AuditEventFilter) -> Result[AuditStatsResponse]:
        if criteria.date_from and criteria.date_to and criteria.date_from > criteria.date_to:
            return Return.err(ValidationError("INVALID_DATE_RANGE", "date_from must not be after date_to"))

        async with self.uow:
            stats = await self.uow.audit_events.get_stats(criteria)
            return Return.ok(AuditStatsResponse(**stats))
