"""
Reset notification hand-off.

Delivery (email, SMS, ...) lives outside this service; the engine only hands
over the plaintext token once through this interface.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

logger = logging.getLogger(__name__)


class ResetNotifier(ABC):
    @abstractmethod
    async def send_reset(self, email: str, token: str, reset_url: str, expires_at: datetime) -> None:
        """Deliver the reset link to the account owner"""
        pass


class LoggingResetNotifier(ResetNotifier):
    """Default adapter: records that a hand-off happened, without the token."""

    async def send_reset(self, email: str, token: str, reset_url: str, expires_at: datetime) -> None:
        logger.info("Password reset link issued for %s (expires %s)", email, expires_at.isoformat())
