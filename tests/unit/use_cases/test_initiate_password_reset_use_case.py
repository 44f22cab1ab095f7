"""
Unit tests for InitiatePasswordResetUseCase

Tests all business logic with mocked dependencies.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.crypto import hash_token
from src.app.services.rate_limiter import RESET_BY_EMAIL, RESET_BY_IP
from src.app.use_cases.password_reset import GENERIC_RESET_MESSAGE, InitiatePasswordResetUseCase
from src.domain.entities import User, UserStatus
from src.domain.errors import RateLimitError, ValidationError


@pytest.fixture
def notifier():
    n = MagicMock()
    n.send_reset = AsyncMock()
    return n


@pytest.fixture
def use_case(mock_uow, rate_limiter, audit_log, notifier, settings):
    return InitiatePasswordResetUseCase(mock_uow, rate_limiter, audit_log, notifier, settings)


def make_user(**kwargs):
    defaults = dict(id=uuid4(), email="user@example.com", password_hash="hash", email_verified=True)
    defaults.update(kwargs)
    return User(**defaults)


@pytest.mark.asyncio
async def test_issues_token_and_hands_it_to_notifier(use_case, mock_uow, notifier, settings):
    user = make_user()
    mock_uow.users.get_by_email.return_value = user
    mock_uow.password_reset_tokens.invalidate_unused_by_user_id.return_value = 0

    result = await use_case.execute("User@Example.com ", "10.0.0.1", "Mozilla/5.0")

    assert result.is_ok()
    assert result.value.message == GENERIC_RESET_MESSAGE
    mock_uow.users.get_by_email.assert_awaited_once_with("user@example.com")
    mock_uow.commit.assert_awaited_once()

    stored = mock_uow.password_reset_tokens.create.call_args.args[0]
    email, token, reset_url, expires_at = notifier.send_reset.call_args.args
    assert email == "user@example.com"
    assert stored.token_hash == hash_token(token)
    assert stored.token_hash != token
    assert len(token) >= 80
    assert reset_url == f"{settings.reset_url_base}?token={token}"
    assert stored.expires_at - stored.created_at == settings.reset_token_ttl
    assert stored.ip_address == "10.0.0.1"
    assert stored.user_agent == "Mozilla/5.0"
    assert stored.is_used is False


@pytest.mark.asyncio
async def test_new_token_invalidates_outstanding_tokens_first(use_case, mock_uow):
    user = make_user()
    mock_uow.users.get_by_email.return_value = user
    order = []
    mock_uow.password_reset_tokens.invalidate_unused_by_user_id.side_effect = (
        lambda *args: order.append("invalidate") or 2
    )
    mock_uow.password_reset_tokens.create.side_effect = lambda token: order.append("create") or token

    result = await use_case.execute("user@example.com")

    assert result.is_ok()
    assert order == ["invalidate", "create"]
    assert mock_uow.password_reset_tokens.invalidate_unused_by_user_id.call_args.args[0] == user.id


@pytest.mark.asyncio
async def test_unknown_email_gets_identical_response(use_case, mock_uow, notifier, audit_calls):
    mock_uow.users.get_by_email.return_value = None
    missing = await use_case.execute("nobody@example.com", "10.0.0.1")

    mock_uow.users.get_by_email.return_value = make_user()
    present = await use_case.execute("user@example.com", "10.0.0.1")

    assert missing.value.model_dump(exclude={"reset_time"}) == present.value.model_dump(
        exclude={"reset_time"}
    )
    assert notifier.send_reset.await_count == 1

    entries = audit_calls("password_reset_requested")
    assert [c.args[1] for c in entries] == [False, True]
    assert entries[0].kwargs["details"].keys() == entries[1].kwargs["details"].keys()
    assert entries[0].kwargs["details"]["reason"] == "user_not_found"


@pytest.mark.asyncio
async def test_disabled_user_gets_no_token(use_case, mock_uow, notifier, audit_calls):
    mock_uow.users.get_by_email.return_value = make_user(status=UserStatus.disabled)

    result = await use_case.execute("user@example.com")

    assert result.is_ok()
    assert result.value.message == GENERIC_RESET_MESSAGE
    mock_uow.password_reset_tokens.create.assert_not_called()
    notifier.send_reset.assert_not_called()
    assert audit_calls("password_reset_requested")[0].kwargs["details"]["reason"] == "user_disabled"


@pytest.mark.asyncio
async def test_rate_limited_by_email(use_case, mock_uow, rate_limiter, decisions, audit_calls):
    rate_limiter.check_and_consume.side_effect = [decisions.rejected(120_000), decisions.allowed()]

    result = await use_case.execute("user@example.com", "10.0.0.1")

    assert result.is_err()
    assert isinstance(result.error, RateLimitError)
    assert result.error.wait_time_ms == 120_000
    mock_uow.users.get_by_email.assert_not_called()
    assert audit_calls("password_reset_rate_limited")[0].kwargs["details"]["limited_by"] == ["email"]


@pytest.mark.asyncio
async def test_consumes_email_and_ip_limits(use_case, mock_uow, rate_limiter, decisions):
    mock_uow.users.get_by_email.return_value = None
    rate_limiter.check_and_consume.side_effect = [decisions.allowed(2), decisions.allowed(7)]

    result = await use_case.execute("user@example.com", "10.0.0.1")

    actions = [c.args[1] for c in rate_limiter.check_and_consume.call_args_list]
    assert actions == [RESET_BY_EMAIL, RESET_BY_IP]
    assert result.value.remaining_requests == 2


@pytest.mark.asyncio
async def test_notifier_failure_is_not_surfaced(use_case, mock_uow, notifier):
    mock_uow.users.get_by_email.return_value = make_user()
    notifier.send_reset.side_effect = RuntimeError("smtp down")

    result = await use_case.execute("user@example.com")

    assert result.is_ok()
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_rejects_blank_email(use_case, rate_limiter):
    result = await use_case.execute("   ")

    assert isinstance(result.error, ValidationError)
    rate_limiter.check_and_consume.assert_not_called()


@pytest.mark.asyncio
async def test_plaintext_token_never_reaches_audit(use_case, mock_uow, notifier, audit_log):
    mock_uow.users.get_by_email.return_value = make_user()

    await use_case.execute("user@example.com")

    token = notifier.send_reset.call_args.args[1]
    for call in audit_log.record.call_args_list:
        assert token not in repr(call)
