"""
Integration tests for login, two-factor login and logout.
"""

import pyotp
import pytest
from sqlmodel import select

from src.domain.entities import AuditEvent, Session, TwoFactorChallenge, UserStatus


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def enable_two_factor(client, session_token):
    setup = await client.post("/2fa/setup", headers=bearer(session_token))
    assert setup.status_code == 200, setup.text
    secret = setup.json()["secret"]
    verify = await client.post(
        "/2fa/verify-setup", json={"code": pyotp.TOTP(secret).now()}, headers=bearer(session_token)
    )
    assert verify.json()["verified"] is True
    return secret, setup.json()["backup_codes"]


@pytest.mark.asyncio
async def test_login_issues_session(client, create_user, login, fetch_one):
    user = await create_user()

    body = await login()

    assert body["requires_2fa"] is False
    assert body["user"]["email"] == user.email
    session_token = body["session"]["session_token"]
    stored = await fetch_one(select(Session).where(Session.user_id == user.id))
    assert stored.token_hash != session_token
    assert stored.ip_address == "127.0.0.1"

    validate = await client.get("/sessions/validate", headers=bearer(session_token))
    assert validate.status_code == 200
    assert validate.json()["user_id"] == str(user.id)


@pytest.mark.asyncio
async def test_login_failures_share_one_answer(client, create_user, fetch_one):
    await create_user()
    await create_user(email="disabled@example.com", status=UserStatus.disabled)

    wrong = await client.post("/auth/login", json={"email": "user@example.com", "password": "Wrong123!"})
    unknown = await client.post("/auth/login", json={"email": "ghost@example.com", "password": "Wrong123!"})
    disabled = await client.post("/auth/login", json={"email": "disabled@example.com", "password": "OldPass123!"})

    assert wrong.status_code == unknown.status_code == disabled.status_code == 401
    assert wrong.json() == unknown.json() == disabled.json()

    entry = await fetch_one(
        select(AuditEvent).where(AuditEvent.action == "login", AuditEvent.email == "disabled@example.com")
    )
    assert entry.event_metadata == {"reason": "user_disabled"}


@pytest.mark.asyncio
async def test_unverified_email(client, create_user):
    await create_user(email_verified=False)

    response = await client.post("/auth/login", json={"email": "user@example.com", "password": "OldPass123!"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"


@pytest.mark.asyncio
async def test_login_rate_limit(client, create_user):
    await create_user()

    for _ in range(10):
        await client.post("/auth/login", json={"email": "user@example.com", "password": "Wrong123!"})
    limited = await client.post("/auth/login", json={"email": "user@example.com", "password": "OldPass123!"})

    assert limited.status_code == 429
    assert "Retry-After" in limited.headers


@pytest.mark.asyncio
async def test_two_factor_login(client, create_user, login, fetch_one):
    await create_user()
    first = await login()
    secret, _ = await enable_two_factor(client, first["session"]["session_token"])

    step_one = await login(remember_me=True)
    assert step_one["requires_2fa"] is True
    assert step_one["session"] is None

    step_two = await client.post(
        "/auth/login/2fa",
        json={"two_factor_token": step_one["two_factor_token"], "code": pyotp.TOTP(secret).now()},
    )
    assert step_two.status_code == 200, step_two.text
    assert step_two.json()["session"]["session_token"]

    replay = await client.post(
        "/auth/login/2fa",
        json={"two_factor_token": step_one["two_factor_token"], "code": pyotp.TOTP(secret).now()},
    )
    assert replay.status_code == 401
    assert replay.json()["error"]["code"] == "INVALID_2FA_TOKEN"


@pytest.mark.asyncio
async def test_two_factor_login_with_backup_code_once(client, create_user, login):
    await create_user()
    first = await login()
    _, backup_codes = await enable_two_factor(client, first["session"]["session_token"])

    challenge = await login()
    used = await client.post(
        "/auth/login/2fa", json={"two_factor_token": challenge["two_factor_token"], "code": backup_codes[0]}
    )
    again = await login()
    reused = await client.post(
        "/auth/login/2fa", json={"two_factor_token": again["two_factor_token"], "code": backup_codes[0]}
    )

    assert used.status_code == 200
    assert reused.status_code == 400
    assert reused.json()["error"]["code"] == "INVALID_CODE"


@pytest.mark.asyncio
async def test_wrong_codes_burn_the_challenge(client, create_user, login, fetch_one):
    await create_user()
    first = await login()
    secret, _ = await enable_two_factor(client, first["session"]["session_token"])
    challenge = await login()

    for _ in range(5):
        wrong = await client.post(
            "/auth/login/2fa", json={"two_factor_token": challenge["two_factor_token"], "code": "ZZZZZ-ZZZZZ"}
        )
        assert wrong.status_code == 400

    burned = await client.post(
        "/auth/login/2fa",
        json={"two_factor_token": challenge["two_factor_token"], "code": pyotp.TOTP(secret).now()},
    )
    assert burned.status_code == 401

    stored = await fetch_one(select(TwoFactorChallenge).where(TwoFactorChallenge.failed_attempts == 5))
    assert stored.consumed_at is not None


@pytest.mark.asyncio
async def test_logout_is_idempotent(client, create_user, login):
    await create_user()
    token = (await login())["session"]["session_token"]

    first = await client.post("/auth/logout", headers=bearer(token))
    second = await client.post("/auth/logout", headers=bearer(token))
    anonymous = await client.post("/auth/logout")

    assert first.json() == {"success": True, "revoked": True}
    assert second.json() == {"success": True, "revoked": False}
    assert anonymous.status_code == 200
    assert (await client.get("/sessions/validate", headers=bearer(token))).status_code == 401


@pytest.mark.asyncio
async def test_logout_all_keeps_current(client, create_user, login):
    await create_user()
    current = (await login())["session"]["session_token"]
    other = (await login())["session"]["session_token"]

    response = await client.post("/auth/logout-all", headers=bearer(current))

    assert response.json()["revoked_sessions"] == 1
    assert (await client.get("/sessions/validate", headers=bearer(current))).status_code == 200
    assert (await client.get("/sessions/validate", headers=bearer(other))).status_code == 401
