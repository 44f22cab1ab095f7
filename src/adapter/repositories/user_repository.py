from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_repository import IUserRepository
from src.domain.base import utcnow
from src.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        stmt = select(User).where(User.email == email)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_password(self, user_id: UUID, password_hash: str) -> bool:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def update_two_factor(
        self,
        user_id: UUID,
        expected_version: int,
        enabled: bool,
        secret_encrypted: Optional[str],
        backup_code_hashes: List[str],
    ) -> bool:
        stmt = (
            update(User)
            .where(User.id == user_id, User.two_factor_version == expected_version)
            .values(
                two_factor_enabled=enabled,
                two_factor_secret_encrypted=secret_encrypted,
                backup_code_hashes=list(backup_code_hashes),
                two_factor_version=expected_version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def update_last_login(self, user_id: UUID, logged_in_at: datetime) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(last_login_at=logged_in_at)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.flush()
