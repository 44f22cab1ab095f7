"""
AuditEvent Entity

Immutable log of all security-relevant events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow
from .enums import AuditEventType, AuditSeverity


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of authentication/security events.

    Business Rules:
    - Append-only (never updated)
    - Deleted only by the retention sweep (90 days by default)
    - user_id / email nullable for anonymous attempts
    - Metadata never contains plaintext tokens, passwords, secrets or codes
    - checksum is an HMAC over integrity_fields(), stamped once at write time
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[UUID] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, max_length=255)

    action: str = Field(max_length=100)  # e.g., "login", "password_reset_requested"
    event_type: AuditEventType = Field(default=AuditEventType.auth)
    severity: AuditSeverity = Field(default=AuditSeverity.info)
    success: bool = Field(default=True)

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=500)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    checksum: Optional[str] = Field(default=None, max_length=64)  # HMAC-SHA256 hex

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_action_success", "action", "success"),
        Index("idx_audit_ip_action", "ip_address", "action"),
    )

    def integrity_fields(self) -> dict:
        """Everything the checksum covers, in JSON-stable form."""
        return {
            "id": str(self.id),
            "user_id": str(self.user_id) if self.user_id else None,
            "email": self.email,
            "action": self.action,
            "event_type": AuditEventType(self.event_type).value,
            "severity": AuditSeverity(self.severity).value,
            "success": bool(self.success),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "metadata": self.event_metadata or {},
            "created_at": self.created_at.isoformat(),
        }
