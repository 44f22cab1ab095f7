"""
Audit Use Case DTOs (Data Transfer Objects)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class AdminAuditEvent(BaseModel):
    """One audit entry as seen by an administrator"""

    id: str
    user_id: Optional[str]
    email: Optional[str]
    action: str
    event_type: str
    severity: str
    success: bool
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: str
    metadata: Dict[str, Any]
    integrity_verified: bool


class AuditSearchResponse(BaseModel):
    events: List[AdminAuditEvent]
    total: int
    limit: int
    offset: int


class AuditStatsResponse(BaseModel):
    total: int
    successful: int
    failed: int
    by_event_type: Dict[str, int]
    by_severity: Dict[str, int]


class IntegrityReport(BaseModel):
    """Ids are grouped by outcome; missing ids were not found in the store"""

    checked: int
    verified: List[str]
    corrupted: List[str]
    missing: List[str]
