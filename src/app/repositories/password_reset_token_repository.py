from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        pass

    @abstractmethod
    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        """Mark token used only if it is still unused. Returns True if this call consumed it."""
        pass

    @abstractmethod
    async def invalidate_unused_by_user_id(self, user_id: UUID, invalidated_at: datetime) -> int:
        """Mark every unused token of a user as used. Returns count."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime, used_before: datetime) -> int:
        """Delete expired tokens and tokens used before the given time. Returns count."""
        pass

    @abstractmethod
    async def count_active(self, now: datetime) -> int:
        """Count unused, unexpired tokens"""
        pass
