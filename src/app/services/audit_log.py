"""
Audit Log

Append-only record of security events. Writes go through their own unit of
work so an entry survives the rollback of the request that produced it, and
a failing store never fails the request. Each entry carries an HMAC checksum
of its fields so later edits made directly in the store can be detected.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from src.app.services.crypto import RecordSigner, sanitize_user_agent
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.domain.base import utcnow
from src.domain.entities import AuditEvent, AuditEventType, AuditSeverity

logger = logging.getLogger(__name__)

SENSITIVE_KEY_FRAGMENTS = ("token", "password", "secret", "code")
ALLOWED_KEYS = frozenset({"token_hash_prefix", "remaining_backup_codes", "backup_code_count"})


def scrub_details(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop any key that could carry a plaintext credential."""
    if not details:
        return {}

    scrubbed = {}
    for key, value in details.items():
        lowered = key.lower()
        if lowered not in ALLOWED_KEYS and any(f in lowered for f in SENSITIVE_KEY_FRAGMENTS):
            continue
        if isinstance(value, dict):
            value = scrub_details(value)
        elif isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        scrubbed[key] = value
    return scrubbed


class AuditLog:
    def __init__(self, uow_factory: UnitOfWorkFactory, signer: RecordSigner, timeout: float = 5.0):
        self.uow_factory = uow_factory
        self.signer = signer
        self.timeout = timeout

    async def record(
        self,
        action: str,
        success: bool,
        *,
        user_id: Optional[UUID] = None,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        event_type: AuditEventType = AuditEventType.auth,
        severity: AuditSeverity = AuditSeverity.info,
    ) -> None:
        """
        Append one entry. Never raises.

        On store failure the entry's action, user and outcome go to the
        fallback logger instead.
        """
        event = AuditEvent(
            user_id=user_id,
            email=email.strip().lower() if email else None,
            action=action,
            event_type=event_type,
            severity=severity,
            success=success,
            ip_address=ip_address,
            user_agent=sanitize_user_agent(user_agent),
            event_metadata=scrub_details(details),
            created_at=utcnow(),
        )
        event.checksum = self.signer.sign(event.integrity_fields())

        try:
            await asyncio.wait_for(self._write(event), timeout=self.timeout)
        except Exception:
            logger.error(
                "Audit log write failed: action=%s user_id=%s success=%s severity=%s",
                action,
                user_id,
                success,
                severity.value,
                exc_info=True,
            )

    async def _write(self, event: AuditEvent) -> None:
        async with self.uow_factory() as uow:
            await uow.audit_events.create(event)
            await uow.commit()

    def verify(self, event: AuditEvent) -> bool:
        """True if the stored entry still matches the checksum stamped at write time."""
        return self.signer.verify(event.integrity_fields(), event.checksum)
