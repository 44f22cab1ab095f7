from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.services.crypto import SecretCipher
from src.app.services.passwords import PasswordHasher, PasswordPolicy
from src.app.services.rate_limiter import RateLimitDecision
from src.app.services.security_settings import SecuritySettings
from src.app.services.two_factor import TwoFactorService
from src.domain.base import utcnow


def _repository(*methods):
    repo = MagicMock()
    for method in methods:
        setattr(repo, method, AsyncMock())
    return repo


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = _repository(
        "get_by_email", "get_by_id", "create", "update_password", "update_two_factor", "update_last_login"
    )
    uow.password_reset_tokens = _repository(
        "create", "get_by_token_hash", "mark_used", "invalidate_unused_by_user_id", "delete_expired", "count_active"
    )
    uow.sessions = _repository(
        "get_by_id",
        "get_by_token_hash",
        "get_active_by_user_id",
        "create",
        "revoke_by_id",
        "revoke_all_by_user_id",
        "revoke_all_except_session",
        "delete_stale",
        "count_active",
    )
    uow.audit_events = _repository(
        "create",
        "get_by_user_paginated",
        "count_failures_since",
        "delete_older_than",
        "get_by_ids",
        "search",
        "get_stats",
    )
    uow.rate_limit_counters = _repository(
        "get_or_create", "restart_window", "increment", "block", "delete_stale", "count_blocked"
    )
    uow.two_factor_challenges = _repository(
        "create", "get_by_token_hash", "record_failure", "consume", "delete_stale"
    )

    # Repositories hand back what they were given
    uow.password_reset_tokens.create.side_effect = lambda token: token
    uow.sessions.create.side_effect = lambda session: session
    uow.two_factor_challenges.create.side_effect = lambda challenge: challenge
    return uow


@pytest.fixture
def audit_log():
    log = MagicMock()
    log.record = AsyncMock()
    return log


def allowed(remaining: int = 2) -> RateLimitDecision:
    return RateLimitDecision(allowed=True, remaining_requests=remaining, reset_time=utcnow() + timedelta(hours=1))


def rejected(wait_time_ms: int = 60_000) -> RateLimitDecision:
    return RateLimitDecision(
        allowed=False,
        remaining_requests=0,
        reset_time=utcnow() + timedelta(milliseconds=wait_time_ms),
        wait_time_ms=wait_time_ms,
    )


@pytest.fixture
def rate_limiter():
    limiter = MagicMock()
    limiter.check_and_consume = AsyncMock(return_value=allowed())
    return limiter


@pytest.fixture
def settings():
    return SecuritySettings()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def policy():
    return PasswordPolicy()


@pytest.fixture
def two_factor_service():
    return TwoFactorService(SecretCipher("unit-test-secret"))


@pytest.fixture
def audit_calls(audit_log):
    """Calls of audit_log.record for one action."""

    def calls(action):
        return [c for c in audit_log.record.call_args_list if c.args[0] == action]

    return calls


@pytest.fixture
def decisions():
    """Factories for rate limiter outcomes."""

    class Decisions:
        allowed = staticmethod(allowed)
        rejected = staticmethod(rejected)

    return Decisions
