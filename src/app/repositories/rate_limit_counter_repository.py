from abc import ABC, abstractmethod
from datetime import datetime
from typing import Tuple
from uuid import UUID

from src.domain.entities import RateLimitCounter


class IRateLimitCounterRepository(ABC):
    """RateLimitCounter repository interface - application layer"""

    @abstractmethod
    async def get_or_create(
        self, identity: str, action: str, now: datetime
    ) -> Tuple[RateLimitCounter, bool]:
        """
        Fetch the counter for (identity, action), creating it with a count of 1.

        Returns:
            Tuple of (counter, created). A concurrent creator loses the
            unique-index race and receives the existing row with created=False.
        """
        pass

    @abstractmethod
    async def restart_window(
        self, counter_id: UUID, previous_window_start: datetime, now: datetime
    ) -> bool:
        """
        Reset count to 1 and start a new window at now, clearing any block.

        Conditional on window_start still being previous_window_start.
        Returns False if another request restarted the window first.
        """
        pass

    @abstractmethod
    async def increment(self, counter_id: UUID, now: datetime) -> int:
        """Atomically add one to request_count. Returns the new count."""
        pass

    @abstractmethod
    async def block(self, counter_id: UUID, blocked_until: datetime, now: datetime) -> None:
        """Set blocked_until"""
        pass

    @abstractmethod
    async def delete_stale(self, window_before: datetime, now: datetime) -> int:
        """Delete counters whose window started before window_before and are not blocked"""
        pass

    @abstractmethod
    async def count_blocked(self, now: datetime) -> int:
        """Count identities currently blocked"""
        pass
