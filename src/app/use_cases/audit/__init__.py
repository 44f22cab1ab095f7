"""
Audit Use Cases

All audit-related business logic.
"""

from .get_audit_events_use_case import GetAuditEventsUseCase
from .search_audit_events_use_case import SearchAuditEventsUseCase
from .get_audit_stats_use_case import GetAuditStatsUseCase
from .verify_audit_integrity_use_case import VerifyAuditIntegrityUseCase
from .dtos import AdminAuditEvent, AuditSearchResponse, AuditStatsResponse, IntegrityReport

__all__ = [
    # Use Cases
    "GetAuditEventsUseCase",
    "SearchAuditEventsUseCase",
    "GetAuditStatsUseCase",
    "VerifyAuditIntegrityUseCase",
    # DTOs
    "AdminAuditEvent",
    "AuditSearchResponse",
    "AuditStatsResponse",
    "IntegrityReport",
]
