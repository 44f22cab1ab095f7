import base64
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import AuditEventFilter, IAuditEventRepository
from src.domain.entities import AuditEvent, AuditEventType, AuditSeverity


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def get_by_user_paginated(
        self, user_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """
        Get audit events for a user with cursor-based pagination.

        Cursor format: base64-encoded ISO timestamp of created_at
        """
        stmt = select(AuditEvent).where(AuditEvent.user_id == user_id)

        if cursor:
            try:
                cursor_timestamp_str = base64.b64decode(cursor).decode("utf-8")
                cursor_timestamp = datetime.fromisoformat(cursor_timestamp_str)
                stmt = stmt.where(AuditEvent.created_at < cursor_timestamp)
            except (ValueError, TypeError):
                # Invalid cursor, start from the newest event
                pass

        stmt = stmt.order_by(AuditEvent.created_at.desc()).limit(limit + 1)

        result = await self.session.exec(stmt)
        events = list(result.all())

        has_more = len(events) > limit
        if has_more:
            events = events[:limit]

        next_cursor = None
        if has_more and events:
            cursor_timestamp_str = events[-1].created_at.isoformat()
            next_cursor = base64.b64encode(cursor_timestamp_str.encode("utf-8")).decode("utf-8")

        return events, next_cursor

    async def count_failures_since(self, actions: Sequence[str], since: datetime) -> int:
        stmt = select(func.count()).select_from(AuditEvent).where(
            AuditEvent.action.in_(list(actions)),
            AuditEvent.success == False,
            AuditEvent.created_at >= since,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(AuditEvent).where(AuditEvent.created_at < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_by_ids(self, ids: Sequence[UUID]) -> List[AuditEvent]:
        if not ids:
            return []
        stmt = select(AuditEvent).where(AuditEvent.id.in_(list(ids)))
        result = await self.session.exec(stmt)
        return list(result.all())

    async def search(
        self, criteria: AuditEventFilter, limit: int = 50, offset: int = 0
    ) -> Tuple[List[AuditEvent], int]:
        conditions = self._conditions(criteria)

        count_stmt = select(func.count()).select_from(AuditEvent).where(*conditions)
        total = (await self.session.exec(count_stmt)).one()

        stmt = (
            select(AuditEvent)
            .where(*conditions)
            .order_by(AuditEvent.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all()), total

    async def get_stats(self, criteria: AuditEventFilter) -> Dict[str, object]:
        conditions = self._conditions(criteria)

        outcome_stmt = (
            select(AuditEvent.success, func.count())
            .where(*conditions)
            .group_by(AuditEvent.success)
        )
        outcomes = {
            bool(success): count for success, count in (await self.session.exec(outcome_stmt)).all()
        }

        type_stmt = (
            select(AuditEvent.event_type, func.count())
            .where(*conditions)
            .group_by(AuditEvent.event_type)
        )
        by_event_type = {
            AuditEventType(event_type).value: count
            for event_type, count in (await self.session.exec(type_stmt)).all()
        }

        severity_stmt = (
            select(AuditEvent.severity, func.count())
            .where(*conditions)
            .group_by(AuditEvent.severity)
        )
        by_severity = {
            AuditSeverity(severity).value: count
            for severity, count in (await self.session.exec(severity_stmt)).all()
        }

        successful = outcomes.get(True, 0)
        failed = outcomes.get(False, 0)
        return {
            "total": successful + failed,
            "successful": successful,
            "failed": failed,
            "by_event_type": by_event_type,
            "by_severity": by_severity,
        }

    @staticmethod
    def _conditions(criteria: AuditEventFilter) -> list:
        conditions = []
        if criteria.action is not None:
            conditions.append(AuditEvent.action == criteria.action)
        if criteria.user_id is not None:
            conditions.append(AuditEvent.user_id == criteria.user_id)
        if criteria.email is not None:
            conditions.append(AuditEvent.email == criteria.email.strip().lower())
        if criteria.event_type is not None:
            conditions.append(AuditEvent.event_type == criteria.event_type)
        if criteria.severity is not None:
            conditions.append(AuditEvent.severity == criteria.severity)
        if criteria.success is not None:
            conditions.append(AuditEvent.success == criteria.success)
        if criteria.ip_address is not None:
            conditions.append(AuditEvent.ip_address == criteria.ip_address)
        if criteria.date_from is not None:
            conditions.append(AuditEvent.created_at >= criteria.date_from)
        if criteria.date_to is not None:
            conditions.append(AuditEvent.created_at <= criteria.date_to)
        return conditions
