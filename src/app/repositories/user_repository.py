from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (lower-cased) email address"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update_password(self, user_id: UUID, password_hash: str) -> bool:
        """Replace the password hash. Returns False if the user does not exist."""
        pass

    @abstractmethod
    async def update_two_factor(
        self,
        user_id: UUID,
        expected_version: int,
        enabled: bool,
        secret_encrypted: Optional[str],
        backup_code_hashes: List[str],
    ) -> bool:
        """
        Atomically write all 2FA fields and bump two_factor_version.

        Applies only if the stored version still equals expected_version.
        Returns False when another writer got there first.
        """
        pass

    @abstractmethod
    async def update_last_login(self, user_id: UUID, logged_in_at: datetime) -> None:
        """Set last_login_at"""
        pass
