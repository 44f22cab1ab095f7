"""
Session issuance shared by password login and 2FA login completion.
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID

from src.app.services.crypto import (
    SESSION_TOKEN_BYTES,
    generate_secure_token,
    hash_token,
    sanitize_user_agent,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Session


async def issue_session(
    uow: UnitOfWork,
    user_id: UUID,
    duration: timedelta,
    ip_address: Optional[str],
    user_agent: Optional[str],
    now: datetime,
) -> Tuple[Session, str]:
    """
    Create a session inside the caller's unit of work (caller commits).

    Returns the stored session and the plaintext bearer token, which is
    handed to the client once and never persisted.
    """
    token = generate_secure_token(SESSION_TOKEN_BYTES)
    session = Session(
        user_id=user_id,
        token_hash=hash_token(token),
        ip_address=ip_address,
        user_agent=sanitize_user_agent(user_agent),
        expires_at=now + duration,
        created_at=now,
        updated_at=now,
    )
    session = await uow.sessions.create(session)
    return session, token
