from datetime import datetime
from typing import Tuple
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.rate_limit_counter_repository import IRateLimitCounterRepository
from src.domain.entities import RateLimitCounter


class RateLimitCounterRepository(IRateLimitCounterRepository):
    """RateLimitCounter repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, identity: str, action: str):
        stmt = select(RateLimitCounter).where(
            RateLimitCounter.identity == identity,
            RateLimitCounter.action == action,
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_or_create(
        self, identity: str, action: str, now: datetime
    ) -> Tuple[RateLimitCounter, bool]:
        counter = await self._get(identity, action)
        if counter:
            return counter, False

        counter = RateLimitCounter(
            identity=identity,
            action=action,
            request_count=1,
            window_start=now,
            created_at=now,
            updated_at=now,
        )
        self.session.add(counter)
        try:
            await self.session.flush()
        except IntegrityError:
            # Lost the insert race on (identity, action). The counter unit of
            # work holds nothing else, so rolling it back is safe.
            await self.session.rollback()
            existing = await self._get(identity, action)
            if existing is None:
                raise
            return existing, False

        await self.session.refresh(counter)
        return counter, True

    async def restart_window(
        self, counter_id: UUID, previous_window_start: datetime, now: datetime
    ) -> bool:
        stmt = (
            update(RateLimitCounter)
            .where(
                RateLimitCounter.id == counter_id,
                RateLimitCounter.window_start == previous_window_start,
            )
            .values(request_count=1, window_start=now, blocked_until=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def increment(self, counter_id: UUID, now: datetime) -> int:
        stmt = (
            update(RateLimitCounter)
            .where(RateLimitCounter.id == counter_id)
            .values(request_count=RateLimitCounter.request_count + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.flush()

        # Column select, so the identity map cannot hand back a stale count
        count_stmt = select(RateLimitCounter.request_count).where(RateLimitCounter.id == counter_id)
        result = await self.session.exec(count_stmt)
        return result.one()

    async def block(self, counter_id: UUID, blocked_until: datetime, now: datetime) -> None:
        stmt = (
            update(RateLimitCounter)
            .where(RateLimitCounter.id == counter_id)
            .values(blocked_until=blocked_until, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def delete_stale(self, window_before: datetime, now: datetime) -> int:
        stmt = delete(RateLimitCounter).where(
            RateLimitCounter.window_start < window_before,
            or_(RateLimitCounter.blocked_until == None, RateLimitCounter.blocked_until < now),
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_blocked(self, now: datetime) -> int:
        stmt = select(func.count()).select_from(RateLimitCounter).where(
            RateLimitCounter.blocked_until > now
        )
        result = await self.session.exec(stmt)
        return result.one()
