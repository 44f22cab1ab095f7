"""
Unit tests for CompletePasswordResetUseCase
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.services.crypto import generate_secure_token, hash_token
from src.app.use_cases.password_reset import RESET_COMPLETED_MESSAGE, CompletePasswordResetUseCase
from src.domain.base import utcnow
from src.domain.entities import PasswordResetToken, User, UserStatus
from src.domain.errors import TokenError, ValidationError

NEW_PASSWORD = "N3w-Passw0rd!"


@pytest.fixture
def use_case(mock_uow, audit_log, hasher, policy, settings):
    return CompletePasswordResetUseCase(mock_uow, audit_log, hasher, policy, settings)


@pytest.fixture
def token():
    return generate_secure_token()


@pytest.fixture
def user():
    return User(id=uuid4(), email="user@example.com", password_hash="old", email_verified=True)


@pytest.fixture
def record(token, user):
    now = utcnow()
    return PasswordResetToken(
        id=uuid4(),
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=now + timedelta(minutes=15),
        created_at=now,
    )


@pytest.mark.asyncio
async def test_successful_reset(use_case, mock_uow, hasher, token, user, record):
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record
    mock_uow.password_reset_tokens.mark_used.return_value = True
    mock_uow.users.get_by_id.return_value = user
    mock_uow.sessions.revoke_all_by_user_id.return_value = 3

    result = await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD, "10.0.0.1", "Mozilla/5.0")

    assert result.is_ok()
    assert result.value.message == RESET_COMPLETED_MESSAGE
    assert result.value.revoked_sessions == 3

    user_id, new_hash = mock_uow.users.update_password.call_args.args
    assert user_id == user.id
    assert hasher.verify(NEW_PASSWORD, new_hash)
    mock_uow.password_reset_tokens.mark_used.assert_awaited_once()
    mock_uow.password_reset_tokens.invalidate_unused_by_user_id.assert_awaited_once()
    mock_uow.sessions.revoke_all_by_user_id.assert_awaited_once()
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_password_mismatch_checked_first(use_case, mock_uow, token):
    result = await use_case.execute(token, NEW_PASSWORD, "different", None, None)

    assert isinstance(result.error, ValidationError)
    assert result.error.code == "PASSWORD_MISMATCH"
    mock_uow.password_reset_tokens.get_by_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_weak_password(use_case, mock_uow, token):
    result = await use_case.execute(token, "password", "password", None, None)

    assert result.error.code == "WEAK_PASSWORD"
    assert result.error.details["violations"]
    mock_uow.password_reset_tokens.get_by_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_used_token_is_rejected(use_case, mock_uow, token, record):
    record.is_used = True
    record.used_at = utcnow()
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record

    result = await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD)

    assert isinstance(result.error, TokenError)
    assert result.error.message == "Invalid or expired reset token"
    mock_uow.users.update_password.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_losing_a_concurrent_completion(use_case, mock_uow, token, record, audit_calls):
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record
    mock_uow.password_reset_tokens.mark_used.return_value = False

    result = await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD)

    assert isinstance(result.error, TokenError)
    mock_uow.rollback.assert_awaited()
    mock_uow.users.update_password.assert_not_called()
    mock_uow.sessions.revoke_all_by_user_id.assert_not_called()
    assert audit_calls("password_reset_completed")[0].args[1] is False


@pytest.mark.asyncio
async def test_disabled_user_cannot_reset(use_case, mock_uow, token, user, record):
    user.status = UserStatus.disabled
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record
    mock_uow.password_reset_tokens.mark_used.return_value = True
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD)

    assert isinstance(result.error, TokenError)
    mock_uow.rollback.assert_awaited()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_store_failure_fails_closed(use_case, mock_uow, token, record):
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record
    mock_uow.password_reset_tokens.mark_used.side_effect = TimeoutError()

    result = await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD)

    assert result.is_err()
    assert result.error.code == "INTERNAL_ERROR"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_audit_carries_password_shape_not_password(
    use_case, mock_uow, token, user, record, audit_calls
):
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = record
    mock_uow.password_reset_tokens.mark_used.return_value = True
    mock_uow.users.get_by_id.return_value = user
    mock_uow.sessions.revoke_all_by_user_id.return_value = 0

    await use_case.execute(token, NEW_PASSWORD, NEW_PASSWORD)

    (entry,) = audit_calls("password_reset_completed")
    assert entry.kwargs["details"]["strength"]["length"] == len(NEW_PASSWORD)
    assert NEW_PASSWORD not in repr(entry)
    assert token not in repr(entry)
