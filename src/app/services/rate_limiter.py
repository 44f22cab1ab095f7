"""
Rate Limiter

Fixed-window request counters per (identity, action), stored in the shared
database so every worker sees the same counts.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from src.app.services.audit_log import AuditLog
from src.app.services.security_settings import SecuritySettings
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, AuditSeverity

logger = logging.getLogger(__name__)

RESET_BY_EMAIL = "password_reset:email"
RESET_BY_IP = "password_reset:ip"
LOGIN_BY_EMAIL = "login:email"
LOGIN_BY_IP = "login:ip"


@dataclass(frozen=True)
class RateLimitPolicy:
    max_requests: int
    window: timedelta
    block_duration: timedelta


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining_requests: int
    reset_time: datetime
    wait_time_ms: Optional[int] = None


def default_policies(settings: SecuritySettings) -> Dict[str, RateLimitPolicy]:
    block = settings.rate_limit_block_duration
    return {
        RESET_BY_EMAIL: RateLimitPolicy(
            settings.reset_max_requests_per_email, settings.reset_rate_limit_window, block
        ),
        RESET_BY_IP: RateLimitPolicy(
            settings.reset_max_requests_per_ip, settings.reset_rate_limit_window, block
        ),
        LOGIN_BY_EMAIL: RateLimitPolicy(
            settings.login_max_attempts_per_email, settings.login_rate_limit_window, block
        ),
        LOGIN_BY_IP: RateLimitPolicy(
            settings.login_max_attempts_per_ip, settings.login_rate_limit_window, block
        ),
    }


def _wait_ms(until: datetime, now: datetime) -> int:
    return max(0, int((until - now).total_seconds() * 1000))


class RateLimiter:
    """
    Business Rules:
    - Blocked identities are rejected until blocked_until passes
    - An elapsed window restarts at a count of 1
    - The request that crosses the ceiling is rejected and blocks the identity
      for block_duration past the end of the window
    - Store failure or timeout fails open (allowed) and is audited
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        policies: Dict[str, RateLimitPolicy],
        audit_log: AuditLog,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow_factory = uow_factory
        self.policies = policies
        self.audit_log = audit_log
        self.timeout = timeout
        self.clock = clock

    async def check_and_consume(self, identity: str, action: str) -> RateLimitDecision:
        policy = self.policies[action]
        identity = identity.strip().lower()
        now = self.clock()

        try:
            return await asyncio.wait_for(
                self._consume(identity, action, policy, now), timeout=self.timeout
            )
        except Exception:
            logger.warning(
                "Rate limit store unavailable for action=%s; allowing request",
                action,
                exc_info=True,
            )
            await self.audit_log.record(
                "rate_limit_store_unavailable",
                False,
                details={"rate_limit_action": action},
                event_type=AuditEventType.system,
                severity=AuditSeverity.warn,
            )
            return RateLimitDecision(
                allowed=True,
                remaining_requests=policy.max_requests,
                reset_time=now + policy.window,
            )

    async def _consume(
        self, identity: str, action: str, policy: RateLimitPolicy, now: datetime
    ) -> RateLimitDecision:
        async with self.uow_factory() as uow:
            counters = uow.rate_limit_counters
            counter, created = await counters.get_or_create(identity, action, now)

            if created:
                await uow.commit()
                return RateLimitDecision(True, policy.max_requests - 1, now + policy.window)

            if counter.blocked_until and counter.blocked_until > now:
                return RateLimitDecision(
                    allowed=False,
                    remaining_requests=0,
                    reset_time=counter.blocked_until,
                    wait_time_ms=_wait_ms(counter.blocked_until, now),
                )

            window_end = counter.window_start + policy.window
            if window_end <= now:
                restarted = await counters.restart_window(counter.id, counter.window_start, now)
                if restarted:
                    await uow.commit()
                    return RateLimitDecision(True, policy.max_requests - 1, now + policy.window)
                # Another request restarted the window first; count against it
                window_end = now + policy.window

            new_count = await counters.increment(counter.id, now)
            if new_count > policy.max_requests:
                blocked_until = max(window_end, now) + policy.block_duration
                await counters.block(counter.id, blocked_until, now)
                await uow.commit()
                return RateLimitDecision(
                    allowed=False,
                    remaining_requests=0,
                    reset_time=blocked_until,
                    wait_time_ms=_wait_ms(blocked_until, now),
                )

            await uow.commit()
            return RateLimitDecision(True, policy.max_requests - new_count, window_end)
