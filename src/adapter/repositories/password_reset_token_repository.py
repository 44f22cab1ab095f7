from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import PasswordResetToken


class PasswordResetTokenRepository(IPasswordResetTokenRepository):
    """PasswordResetToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        stmt = select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id, PasswordResetToken.is_used == False)
            .values(is_used=True, used_at=used_at, updated_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def invalidate_unused_by_user_id(self, user_id: UUID, invalidated_at: datetime) -> int:
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id, PasswordResetToken.is_used == False)
            .values(is_used=True, used_at=invalidated_at, updated_at=invalidated_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_expired(self, now: datetime, used_before: datetime) -> int:
        stmt = delete(PasswordResetToken).where(
            or_(
                PasswordResetToken.expires_at < now,
                (PasswordResetToken.is_used == True) & (PasswordResetToken.used_at < used_before),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_active(self, now: datetime) -> int:
        stmt = select(func.count()).select_from(PasswordResetToken).where(
            PasswordResetToken.is_used == False,
            PasswordResetToken.expires_at > now,
        )
        result = await self.session.exec(stmt)
        return result.one()
