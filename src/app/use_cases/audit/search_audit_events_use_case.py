"""
Search Audit Events Use Case

Filtered, offset-paginated view over every audit entry for administrators.
"""

from libs.result import Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ValidationError
from .dtos import AdminAuditEvent, AuditSearchResponse

MAX_PAGE_SIZE = 100


class SearchAuditEventsUseCase:
    """
    Business Rules:
    - Filters combine with AND; an empty filter matches everything
    - date_from / date_to are inclusive bounds on created_at
    - Newest first, at most 100 per page
    - Each entry reports whether its checksum still verifies
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog):
        self.uow = uow
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        criteria: AuditEventFilter,
        limit: int = 50,
        offset: int = 0,
    ) -> Result[AuditSearchResponse]:
        if not 1 <= limit <= MAX_PAGE_SIZE or offset < 0:
            return Return.err(
                ValidationError("INVALID_PAGE", f"limit must be 1-{MAX_PAGE_SIZE} and offset >= 0")
            )
        if criteria.date_from and criteria.date_to and criteria.date_from > criteria.date_to:
            return Return.err(ValidationError("INVALID_DATE_RANGE", "date_from must not be after date_to"))

        async with self.uow:
            events, total = await self.uow.audit_events.search(criteria, limit=limit, offset=offset)

            return Return.ok(
                AuditSearchResponse(
                    events=[
                        AdminAuditEvent(
                            id=str(event.id),
                            user_id=str(event.user_id) if event.user_id else None,
                            email=event.email,
                            action=event.action,
                            event_type=event.event_type.value,
                            severity=event.severity.value,
                            success=event.success,
                            ip_address=event.ip_address,
                            user_agent=event.user_agent,
                            timestamp=event.created_at.isoformat() + "Z",
                            metadata=event.event_metadata or {},
                            integrity_verified=self.audit_log.verify(event),
                        )
                        for event in events
                    ],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )
