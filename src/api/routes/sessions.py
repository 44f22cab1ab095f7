"""
Session API Routes

Inspection and rotation of the caller's sessions.
"""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, status

from src.api.error import to_http_error
from src.app.services.audit_log import AuditLog
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    ListSessionsResponse,
    ListSessionsUseCase,
    RefreshSessionResponse,
    RefreshSessionUseCase,
    SessionValidationResponse,
)
from src.depends import (
    CurrentSession,
    get_audit_log,
    get_client_info,
    get_current_session,
    get_unit_of_work,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=ListSessionsResponse)
async def list_sessions(
    current: CurrentSession = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    List Active Sessions

    The session making the request is flagged with is_current.
    """
    result = await ListSessionsUseCase(uow).execute(current.user_id, current.token)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get("/validate", status_code=status.HTTP_200_OK, response_model=SessionValidationResponse)
async def validate_session(current: CurrentSession = Depends(get_current_session)):
    """
    Validate Session

    Raises:
        - 401 Unauthorized: Invalid, revoked or expired session
    """
    return SessionValidationResponse(
        session_id=str(current.session_id),
        user_id=str(current.user_id),
        expires_at=current.expires_at,
        needs_refresh=current.needs_refresh,
    )


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RefreshSessionResponse)
async def refresh_session(
    current: CurrentSession = Depends(get_current_session),
    client: Tuple[Optional[str], Optional[str]] = Depends(get_client_info),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Refresh Session

    Rotates the bearer token: the old token stops working immediately.

    Raises:
        - 401 Unauthorized: Invalid, revoked or expired session
    """
    ip_address, user_agent = client
    result = await RefreshSessionUseCase(uow, audit_log).execute(current.token, ip_address, user_agent)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
