"""
Verify Audit Integrity Use Case

Recomputes the checksum of stored audit entries to detect edits made
directly in the store.
"""

from typing import List, Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType, AuditSeverity
from src.domain.errors import ValidationError
from .dtos import IntegrityReport

MAX_IDS_PER_CHECK = 500


class VerifyAuditIntegrityUseCase:
    """
    Business Rules:
    - Between 1 and 500 entry ids per check; duplicates are checked once
    - An entry without a checksum, or whose checksum no longer matches its
      fields, is reported as corrupted
    - The check itself is audited; any corrupted entry makes it critical
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog):
        self.uow = uow
        self.audit_log = audit_log

    @guarded
    async def execute(
        self,
        event_ids: List[UUID],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[IntegrityReport]:
        unique_ids = list(dict.fromkeys(event_ids or []))
        if not 1 <= len(unique_ids) <= MAX_IDS_PER_CHECK:
            return Return.err(
                ValidationError("INVALID_REQUEST", f"Provide between 1 and {MAX_IDS_PER_CHECK} event ids")
            )

        async with self.uow:
            events = await self.uow.audit_events.get_by_ids(unique_ids)
            found = {event.id: event for event in events}

            verified, corrupted, missing = [], [], []
            for event_id in unique_ids:
                event = found.get(event_id)
                if event is None:
                    missing.append(str(event_id))
                elif self.audit_log.verify(event):
                    verified.append(str(event_id))
                else:
                    corrupted.append(str(event_id))

        await self.audit_log.record(
            "audit_integrity_check",
            not corrupted,
            ip_address=ip_address,
            user_agent=user_agent,
            details={
                "checked": len(unique_ids),
                "corrupted": len(corrupted),
                "missing": len(missing),
                "corrupted_ids": corrupted[:20],
            },
            event_type=AuditEventType.system,
            severity=AuditSeverity.critical if corrupted else AuditSeverity.info,
        )
        return Return.ok(
            IntegrityReport(
                checked=len(unique_ids),
                verified=verified,
                corrupted=corrupted,
                missing=missing,
            )
        )
