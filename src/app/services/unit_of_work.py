from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.app.repositories.rate_limit_counter_repository import IRateLimitCounterRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.two_factor_challenge_repository import ITwoFactorChallengeRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    audit_events: IAuditEventRepository
    password_reset_tokens: IPasswordResetTokenRepository
    rate_limit_counters: IRateLimitCounterRepository
    two_factor_challenges: ITwoFactorChallengeRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


# Opens an independent unit of work (own connection/transaction).
# Used by the rate limiter and audit log so their writes never share
# the fate of the request's transaction.
UnitOfWorkFactory = Callable[[], AsyncContextManager[UnitOfWork]]
