from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import TwoFactorChallenge


class ITwoFactorChallengeRepository(ABC):
    """TwoFactorChallenge repository interface - application layer"""

    @abstractmethod
    async def create(self, challenge: TwoFactorChallenge) -> TwoFactorChallenge:
        """Create a new pending 2FA login"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[TwoFactorChallenge]:
        """Get challenge by token hash"""
        pass

    @abstractmethod
    async def record_failure(self, challenge_id: UUID, max_attempts: int, now: datetime) -> int:
        """
        Increment failed_attempts; consume the challenge once max_attempts is reached.

        Returns the new failed_attempts value.
        """
        pass

    @abstractmethod
    async def consume(self, challenge_id: UUID, now: datetime) -> bool:
        """Mark consumed only if still unconsumed. Returns True if this call consumed it."""
        pass

    @abstractmethod
    async def delete_stale(self, now: datetime) -> int:
        """Delete expired or consumed challenges. Returns count."""
        pass
