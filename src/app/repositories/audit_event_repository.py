from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from src.domain.entities import AuditEvent, AuditEventType, AuditSeverity


@dataclass(frozen=True)
class AuditEventFilter:
    """Admin search criteria; None means no constraint"""

    action: Optional[str] = None
    user_id: Optional[UUID] = None
    email: Optional[str] = None
    event_type: Optional[AuditEventType] = None
    severity: Optional[AuditSeverity] = None
    success: Optional[bool] = None
    ip_address: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def get_by_user_paginated(
        self, user_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """
        Get audit events for a user with cursor-based pagination.

        Returns:
            Tuple of (events list, next_cursor)
            - events: List of audit events ordered by created_at DESC
            - next_cursor: Cursor for next page, None if no more events
        """
        pass

    @abstractmethod
    async def count_failures_since(self, actions: Sequence[str], since: datetime) -> int:
        """Count unsuccessful events of the given actions since a point in time"""
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Retention sweep - the only delete path. Returns count."""
        pass

    @abstractmethod
    async def get_by_ids(self, ids: Sequence[UUID]) -> List[AuditEvent]:
        """Events with the given ids; unknown ids are skipped"""
        pass

    @abstractmethod
    async def search(
        self, criteria: AuditEventFilter, limit: int = 50, offset: int = 0
    ) -> Tuple[List[AuditEvent], int]:
        """
        Filtered admin search.

        Returns:
            Tuple of (events newest first, total matching count)
        """
        pass

    @abstractmethod
    async def get_stats(self, criteria: AuditEventFilter) -> Dict[str, object]:
        """total, successful, failed, by_event_type and by_severity for the filter"""
        pass
