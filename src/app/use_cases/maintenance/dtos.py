"""
Maintenance Use Case DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel


class MaintenanceResponse(BaseModel):
    deleted_reset_tokens: int
    deleted_rate_limit_counters: int
    deleted_two_factor_challenges: int
    deleted_sessions: int
    deleted_audit_events: int


class SecurityStatsResponse(BaseModel):
    active_reset_tokens: int
    recent_failed_reset_attempts: int
    blocked_identities: int
    active_sessions: int
