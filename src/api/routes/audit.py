"""
Audit API Routes

Lets a signed-in user review their own security history.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import to_http_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.depends import CurrentSession, get_current_session, get_unit_of_work

router = APIRouter(prefix="/audit", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    action: str
    success: bool
    severity: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    """GET /audit/events response payload"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get("/events", status_code=status.HTTP_200_OK, response_model=AuditEventsResponse)
async def get_my_audit_events(
    current: CurrentSession = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get My Security Events

    Query Parameters:
        - limit: Maximum number of events to return (1-100, default 50)
        - cursor: Pagination cursor for fetching next page

    Returns:
        - events: List of audit events ordered by newest first
        - next_cursor: Cursor for next page (null if no more events)
    """
    result = await GetAuditEventsUseCase(uow).execute(current.user_id, limit=limit, cursor=cursor)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
