from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """
        Get session by token hash.

        We don't filter by revoked/expired here - that's checked in the use case
        so we can return appropriate error messages.
        """
        stmt = select(Session).where(Session.token_hash == token_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_user_id(self, user_id: UUID, now: datetime) -> List[Session]:
        stmt = (
            select(Session)
            .where(Session.user_id == user_id, Session.is_active == True, Session.expires_at > now)
            .order_by(Session.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def revoke_by_id(self, session_id: UUID, revoked_at: datetime) -> bool:
        """Revoke a specific session by ID"""
        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.is_active == True)
            .values(is_active=False, revoked_at=revoked_at, updated_at=revoked_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_user_id(self, user_id: UUID, revoked_at: datetime) -> int:
        """Revoke all active sessions for a user"""
        stmt = (
            update(Session)
            .where(Session.user_id == user_id, Session.is_active == True)
            .values(is_active=False, revoked_at=revoked_at, updated_at=revoked_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_all_except_session(
        self, user_id: UUID, session_id: UUID, revoked_at: datetime
    ) -> int:
        """Revoke all sessions for a user except the specified session"""
        stmt = (
            update(Session)
            .where(
                Session.user_id == user_id,
                Session.id != session_id,
                Session.is_active == True,
            )
            .values(is_active=False, revoked_at=revoked_at, updated_at=revoked_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_stale(self, now: datetime, inactive_before: datetime) -> int:
        stmt = delete(Session).where(
            or_(
                Session.expires_at < now,
                (Session.is_active == False) & (Session.updated_at < inactive_before),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_active(self, now: datetime) -> int:
        stmt = select(func.count()).select_from(Session).where(
            Session.is_active == True, Session.expires_at > now
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
