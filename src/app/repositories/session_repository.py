from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by SHA-256 hash of its token"""
        pass

    @abstractmethod
    async def get_active_by_user_id(self, user_id: UUID, now: datetime) -> List[Session]:
        """Get all active, unexpired sessions for a user, newest first"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def revoke_by_id(self, session_id: UUID, revoked_at: datetime) -> bool:
        """Revoke a specific session. Returns True if it was active and is now revoked."""
        pass

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: UUID, revoked_at: datetime) -> int:
        """Revoke all active sessions for a user. Returns count of revoked sessions."""
        pass

    @abstractmethod
    async def revoke_all_except_session(
        self, user_id: UUID, session_id: UUID, revoked_at: datetime
    ) -> int:
        """Revoke all active sessions for a user except the specified session. Returns count."""
        pass

    @abstractmethod
    async def delete_stale(self, now: datetime, inactive_before: datetime) -> int:
        """Delete expired sessions and sessions revoked before the given time. Returns count."""
        pass

    @abstractmethod
    async def count_active(self, now: datetime) -> int:
        """Count active, unexpired sessions"""
        pass
