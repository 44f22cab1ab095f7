"""
Get Audit Events Use Case

Retrieves a user's own security history with pagination.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork


class GetAuditEventsUseCase:
    """
    Use case for retrieving the audit events of the signed-in user.

    Business Rules:
    - Results are user-scoped (only events about the caller)
    - Results ordered by newest first
    - Supports cursor-based pagination
    - Each event includes action, outcome, timestamp, client and metadata
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @guarded
    async def execute(
        self,
        user_id: UUID,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Args:
            user_id: User UUID from the validated session
            limit: Maximum number of events to return
            cursor: Pagination cursor (optional)

        Returns:
            Result with events list and next_cursor
        """
        async with self.uow:
            events, next_cursor = await self.uow.audit_events.get_by_user_paginated(
                user_id, limit=limit, cursor=cursor
            )

            events_list = [
                {
                    "action": event.action,
                    "success": event.success,
                    "severity": event.severity.value,
                    "ip_address": event.ip_address,
                    "user_agent": event.user_agent,
                    "timestamp": event.created_at.isoformat() + "Z",
                    "metadata": event.event_metadata or {},
                }
                for event in events
            ]

            return Return.ok({"events": events_list, "next_cursor": next_cursor})
