"""
Unit tests for session validation, refresh, listing and logout.
"""

from dataclasses import replace
from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.services.crypto import generate_secure_token, hash_token
from src.app.use_cases.sessions import (
    ListSessionsUseCase,
    LogoutAllDevicesUseCase,
    LogoutUseCase,
    RefreshSessionUseCase,
    ValidateSessionUseCase,
)
from src.domain.base import utcnow
from src.domain.entities import Session, User, UserStatus
from src.domain.errors import TokenError


def make_session(user_id, token, lifetime=timedelta(hours=24), age=timedelta(0), **kwargs):
    created = utcnow() - age
    return Session(
        id=uuid4(),
        user_id=user_id,
        token_hash=hash_token(token),
        ip_address="10.0.0.1",
        user_agent="Mozilla/5.0",
        expires_at=created + lifetime,
        created_at=created,
        updated_at=created,
        **kwargs,
    )


@pytest.fixture
def user():
    return User(id=uuid4(), email="user@example.com", password_hash="hash", email_verified=True)


@pytest.fixture
def token():
    return generate_secure_token(32)


class TestValidateSession:
    @pytest.mark.asyncio
    async def test_valid_session(self, mock_uow, audit_log, settings, user, token):
        session = make_session(user.id, token)
        mock_uow.sessions.get_by_token_hash.return_value = session
        mock_uow.users.get_by_id.return_value = user

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(token)

        assert result.value.user_id == str(user.id)
        assert result.value.session_id == str(session.id)
        assert result.value.needs_refresh is False
        audit_log.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_needs_refresh_in_last_quarter(self, mock_uow, audit_log, settings, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(
            user.id, token, age=timedelta(hours=19)
        )
        mock_uow.users.get_by_id.return_value = user

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(token)

        assert result.value.needs_refresh is True

    @pytest.mark.asyncio
    async def test_expired_session(self, mock_uow, audit_log, settings, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(
            user.id, token, age=timedelta(hours=25)
        )

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(token)

        assert isinstance(result.error, TokenError)
        assert result.error.code == "INVALID_SESSION"

    @pytest.mark.asyncio
    async def test_revoked_session(self, mock_uow, audit_log, settings, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(
            user.id, token, is_active=False, revoked_at=utcnow()
        )

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(token)

        assert result.error.code == "INVALID_SESSION"

    @pytest.mark.asyncio
    async def test_disabled_user_session_revoked(
        self, mock_uow, audit_log, settings, user, token, audit_calls
    ):
        user.status = UserStatus.disabled
        session = make_session(user.id, token)
        mock_uow.sessions.get_by_token_hash.return_value = session
        mock_uow.users.get_by_id.return_value = user

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(token)

        assert result.error.code == "INVALID_SESSION"
        mock_uow.sessions.revoke_by_id.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()
        assert audit_calls("session_revoked")[0].kwargs["details"]["reason"] == "user_inactive"

    @pytest.mark.asyncio
    async def test_strict_binding_revokes_on_ip_change(self, mock_uow, audit_log, settings, user, token):
        strict = replace(settings, session_strict_binding=True)
        mock_uow.sessions.get_by_token_hash.return_value = make_session(user.id, token)
        mock_uow.users.get_by_id.return_value = user

        moved = await ValidateSessionUseCase(mock_uow, audit_log, strict).execute(
            token, "192.168.0.9", "Mozilla/5.0"
        )

        assert moved.error.code == "INVALID_SESSION"
        mock_uow.sessions.revoke_by_id.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_binding_ignored_when_not_strict(self, mock_uow, audit_log, settings, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(user.id, token)
        mock_uow.users.get_by_id.return_value = user

        result = await ValidateSessionUseCase(mock_uow, audit_log, settings).execute(
            token, "192.168.0.9", "curl/8.0"
        )

        assert result.is_ok()


class TestRefreshSession:
    @pytest.mark.asyncio
    async def test_rotates_token_with_same_lifetime(self, mock_uow, audit_log, user, token):
        old = make_session(user.id, token, lifetime=timedelta(days=30), age=timedelta(days=25))
        mock_uow.sessions.get_by_token_hash.return_value = old
        mock_uow.users.get_by_id.return_value = user
        mock_uow.sessions.revoke_by_id.return_value = True

        result = await RefreshSessionUseCase(mock_uow, audit_log).execute(token)

        assert result.value.previous_session_id == str(old.id)
        assert result.value.session.session_token != token
        new = mock_uow.sessions.create.call_args.args[0]
        assert new.expires_at - new.created_at == timedelta(days=30)
        mock_uow.sessions.revoke_by_id.assert_awaited_once()
        assert mock_uow.sessions.revoke_by_id.call_args.args[0] == old.id
        mock_uow.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_refresh_loses(self, mock_uow, audit_log, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(user.id, token)
        mock_uow.users.get_by_id.return_value = user
        mock_uow.sessions.revoke_by_id.return_value = False

        result = await RefreshSessionUseCase(mock_uow, audit_log).execute(token)

        assert result.error.code == "INVALID_SESSION"
        mock_uow.sessions.create.assert_not_called()
        mock_uow.rollback.assert_awaited()


class TestListSessions:
    @pytest.mark.asyncio
    async def test_flags_current_session(self, mock_uow, user, token):
        other_token = generate_secure_token(32)
        current = make_session(user.id, token)
        other = make_session(user.id, other_token)
        mock_uow.sessions.get_active_by_user_id.return_value = [other, current]

        result = await ListSessionsUseCase(mock_uow).execute(user.id, token)

        flags = {s.session_id: s.is_current for s in result.value.sessions}
        assert flags == {str(current.id): True, str(other.id): False}


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_revokes(self, mock_uow, audit_log, user, token):
        session = make_session(user.id, token)
        mock_uow.sessions.get_by_token_hash.return_value = session
        mock_uow.sessions.revoke_by_id.return_value = True

        result = await LogoutUseCase(mock_uow, audit_log).execute(token)

        assert result.value.revoked is True
        assert mock_uow.sessions.revoke_by_id.call_args.args[0] == session.id

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, mock_uow, audit_log, token):
        mock_uow.sessions.get_by_token_hash.return_value = None

        result = await LogoutUseCase(mock_uow, audit_log).execute(token)

        assert result.value.success is True
        assert result.value.revoked is False
        mock_uow.sessions.revoke_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_logout_all_keeps_current(self, mock_uow, audit_log, user, token):
        current = make_session(user.id, token)
        mock_uow.sessions.get_by_token_hash.return_value = current
        mock_uow.sessions.revoke_all_except_session.return_value = 4

        result = await LogoutAllDevicesUseCase(mock_uow, audit_log).execute(user.id, token)

        assert result.value.revoked_sessions == 4
        mock_uow.sessions.revoke_all_except_session.assert_awaited_once()
        mock_uow.sessions.revoke_all_by_user_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_logout_all_ignores_foreign_session(self, mock_uow, audit_log, user, token):
        mock_uow.sessions.get_by_token_hash.return_value = make_session(uuid4(), token)
        mock_uow.sessions.revoke_all_by_user_id.return_value = 2

        result = await LogoutAllDevicesUseCase(mock_uow, audit_log).execute(user.id, token)

        assert result.value.revoked_sessions == 2
        mock_uow.sessions.revoke_all_except_session.assert_not_called()
