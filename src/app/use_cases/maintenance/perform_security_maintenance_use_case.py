"""
Perform Security Maintenance Use Case

Periodic cleanup of expired security records. Meant to be triggered by an
external scheduler through the admin API.
"""

from libs.result import Result, Return
from src.app.services.audit_log import AuditLog
from src.app.services.guard import guarded
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType
from .dtos import MaintenanceResponse


class PerformSecurityMaintenanceUseCase:
    """
    Business Rules:
    - Reset tokens: expired ones, and used ones older than 7 days
    - Rate limit counters: window older than 30 days and not blocked
    - Two-factor challenges: expired or consumed
    - Sessions: expired ones, and revoked ones older than 30 days
    - Audit events: older than the retention horizon (90 days by default)
    """

    def __init__(self, uow: UnitOfWork, audit_log: AuditLog, settings: SecuritySettings):
        self.uow = uow
        self.audit_log = audit_log
        self.settings = settings

    @guarded
    async def execute(self) -> Result[MaintenanceResponse]:
        now = utcnow()
        async with self.uow:
            response = MaintenanceResponse(
                deleted_reset_tokens=await self.uow.password_reset_tokens.delete_expired(
                    now, now - self.settings.used_token_retention
                ),
                deleted_rate_limit_counters=await self.uow.rate_limit_counters.delete_stale(
                    now - self.settings.rate_limit_retention, now
                ),
                deleted_two_factor_challenges=await self.uow.two_factor_challenges.delete_stale(now),
                deleted_sessions=await self.uow.sessions.delete_stale(
                    now, now - self.settings.inactive_session_retention
                ),
                deleted_audit_events=await self.uow.audit_events.delete_older_than(
                    now - self.settings.audit_retention
                ),
            )
            await self.uow.commit()

        await self.audit_log.record(
            "security_maintenance",
            True,
            details=response.model_dump(),
            event_type=AuditEventType.system,
        )
        return Return.ok(response)
