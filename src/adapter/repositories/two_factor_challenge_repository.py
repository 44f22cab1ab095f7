from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import case, delete, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.two_factor_challenge_repository import ITwoFactorChallengeRepository
from src.domain.entities import TwoFactorChallenge


class TwoFactorChallengeRepository(ITwoFactorChallengeRepository):
    """TwoFactorChallenge repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, challenge: TwoFactorChallenge) -> TwoFactorChallenge:
        self.session.add(challenge)
        await self.session.flush()
        await self.session.refresh(challenge)
        return challenge

    async def get_by_token_hash(self, token_hash: str) -> Optional[TwoFactorChallenge]:
        stmt = select(TwoFactorChallenge).where(TwoFactorChallenge.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def record_failure(self, challenge_id: UUID, max_attempts: int, now: datetime) -> int:
        new_attempts = TwoFactorChallenge.failed_attempts + 1
        stmt = (
            update(TwoFactorChallenge)
            .where(TwoFactorChallenge.id == challenge_id)
            .values(
                failed_attempts=new_attempts,
                consumed_at=case(
                    (new_attempts >= max_attempts, now),
                    else_=TwoFactorChallenge.consumed_at,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.flush()

        count_stmt = select(TwoFactorChallenge.failed_attempts).where(
            TwoFactorChallenge.id == challenge_id
        )
        result = await self.session.exec(count_stmt)
        return result.one()

    async def consume(self, challenge_id: UUID, now: datetime) -> bool:
        stmt = (
            update(TwoFactorChallenge)
            .where(TwoFactorChallenge.id == challenge_id, TwoFactorChallenge.consumed_at == None)
            .values(consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def delete_stale(self, now: datetime) -> int:
        stmt = delete(TwoFactorChallenge).where(
            or_(TwoFactorChallenge.expires_at < now, TwoFactorChallenge.consumed_at != None)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
