from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.password_reset_token_repository import PasswordResetTokenRepository
from src.adapter.repositories.rate_limit_counter_repository import RateLimitCounterRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.repositories.two_factor_challenge_repository import TwoFactorChallengeRepository
from src.adapter.repositories.user_repository import UserRepository
from src.app.services.unit_of_work import UnitOfWork, UnitOfWorkFactory


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        self.password_reset_tokens = PasswordResetTokenRepository(self.session)
        self.rate_limit_counters = RateLimitCounterRepository(self.session)
        self.two_factor_challenges = TwoFactorChallengeRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()


def build_unit_of_work_factory(session_factory: sessionmaker) -> UnitOfWorkFactory:
    """Factory producing a fresh session + unit of work per call."""

    @asynccontextmanager
    async def open_unit_of_work() -> AsyncIterator[UnitOfWork]:
        async with session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                yield uow

    return open_unit_of_work
