"""
Admin API Routes - System Administration Endpoints

These endpoints are for schedulers and support tooling.
Authentication is via Admin API Key, not user sessions.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import to_http_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_log import AuditLog
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import (
    AuditSearchResponse,
    AuditStatsResponse,
    GetAuditStatsUseCase,
    IntegrityReport,
    SearchAuditEventsUseCase,
    VerifyAuditIntegrityUseCase,
)
from src.app.use_cases.maintenance import (
    GetSecurityStatsUseCase,
    MaintenanceResponse,
    PerformSecurityMaintenanceUseCase,
    SecurityStatsResponse,
)
from src.app.use_cases.password_reset import (
    InvalidateTokensResponse,
    InvalidateUserResetTokensUseCase,
)
from src.depends import get_audit_log, get_client_info, get_settings, get_unit_of_work
from src.domain.entities import AuditEventType, AuditSeverity

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/maintenance",
    status_code=status.HTTP_200_OK,
    response_model=MaintenanceResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def perform_maintenance(
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Perform Security Maintenance

    Deletes expired tokens, stale counters, old sessions and audit entries
    past retention. Intended for a periodic scheduler.

    Requires: X-Admin-API-Key header
    """
    result = await PerformSecurityMaintenanceUseCase(uow, audit_log, settings).execute()

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get(
    "/security-stats",
    status_code=status.HTTP_200_OK,
    response_model=SecurityStatsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def get_security_stats(uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Security Stats

    Requires: X-Admin-API-Key header
    """
    result = await GetSecurityStatsUseCase(uow).execute()

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/users/{user_id}/reset-tokens/invalidate",
    status_code=status.HTTP_200_OK,
    response_model=InvalidateTokensResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def invalidate_user_reset_tokens(
    user_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Invalidate a User's Reset Tokens

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: USER_NOT_FOUND
    """
    result = await InvalidateUserResetTokensUseCase(uow, audit_log).execute(user_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


class VerifyIntegrityRequest(BaseModel):
    event_ids: List[UUID] = Field(..., min_length=1, max_length=500)


def audit_event_filter(
    action: Optional[str] = Query(None, description="Exact action name, e.g. login"),
    user_id: Optional[UUID] = Query(None),
    email: Optional[str] = Query(None),
    event_type: Optional[AuditEventType] = Query(None),
    severity: Optional[AuditSeverity] = Query(None),
    success: Optional[bool] = Query(None),
    ip_address: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None, description="Inclusive lower bound (UTC)"),
    date_to: Optional[datetime] = Query(None, description="Inclusive upper bound (UTC)"),
) -> AuditEventFilter:
    return AuditEventFilter(
        action=action,
        user_id=user_id,
        email=email,
        event_type=event_type,
        severity=severity,
        success=success,
        ip_address=ip_address,
        date_from=_naive_utc(date_from),
        date_to=_naive_utc(date_to),
    )


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # created_at columns hold naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@router.get(
    "/audit/events",
    status_code=status.HTTP_200_OK,
    response_model=AuditSearchResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def search_audit_events(
    criteria: AuditEventFilter = Depends(audit_event_filter),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    offset: int = Query(0, ge=0),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Search Audit Events

    Filters by action, user, email, category, severity, outcome, IP and
    date range. Each event reports whether its checksum still verifies.

    Requires: X-Admin-API-Key header
    """
    result = await SearchAuditEventsUseCase(uow, audit_log).execute(criteria, limit=limit, offset=offset)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get(
    "/audit/stats",
    status_code=status.HTTP_200_OK,
    response_model=AuditStatsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def get_audit_stats(
    criteria: AuditEventFilter = Depends(audit_event_filter),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Audit Stats

    Requires: X-Admin-API-Key header
    """
    result = await GetAuditStatsUseCase(uow).execute(criteria)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/audit/verify-integrity",
    status_code=status.HTTP_200_OK,
    response_model=IntegrityReport,
    dependencies=[Depends(verify_admin_api_key)],
)
async def verify_audit_integrity(
    request: VerifyIntegrityRequest,
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Verify Audit Integrity

    Recomputes the checksum of each listed entry.

    Requires: X-Admin-API-Key header

    Returns:
        - verified / corrupted / missing: entry ids grouped by outcome
    """
    ip_address, user_agent = client
    result = await VerifyAuditIntegrityUseCase(uow, audit_log).execute(
        request.event_ids, ip_address, user_agent
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
