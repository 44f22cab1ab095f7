import pyotp
import pytest
from sqlmodel import select

from src.domain.entities import AuditEvent, AuditSeverity, User


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signed_in(create_user, login):
    async def sign_in():
        user = await create_user()
        body = await login()
        return user, body["session"]["session_token"]

    return sign_in


@pytest.mark.asyncio
async def test_setup_requires_session(client):
    response = await client.post("/2fa/setup")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_setup_and_verify(client, signed_in, fetch_one):
    user, token = await signed_in()

    setup = await client.post("/2fa/setup", headers=bearer(token))
    body = setup.json()
    assert body["qr_payload"].startswith("otpauth://totp/")
    assert len(body["backup_codes"]) == 8

    stored = await fetch_one(select(User).where(User.id == user.id))
    assert stored.two_factor_enabled is False
    assert stored.two_factor_secret_encrypted != body["secret"]
    assert not set(body["backup_codes"]) & set(stored.backup_code_hashes)

    wrong = await client.post("/2fa/verify-setup", json={"code": "000000x"}, headers=bearer(token))
    assert wrong.status_code == 200
    assert wrong.json()["verified"] is False

    right = await client.post(
        "/2fa/verify-setup", json={"code": pyotp.TOTP(body["secret"]).now()}, headers=bearer(token)
    )
    assert right.json()["verified"] is True

    again = await client.post("/2fa/setup", headers=bearer(token))
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_ENABLED"


@pytest.mark.asyncio
async def test_verify_code_and_backup_codes(client, signed_in):
    _, token = await signed_in()
    setup = (await client.post("/2fa/setup", headers=bearer(token))).json()
    totp = pyotp.TOTP(setup["secret"])
    await client.post("/2fa/verify-setup", json={"code": totp.now()}, headers=bearer(token))

    by_totp = await client.post("/2fa/verify", json={"code": totp.now()}, headers=bearer(token))
    by_backup = await client.post("/2fa/verify", json={"code": setup["backup_codes"][0]}, headers=bearer(token))
    reused = await client.post("/2fa/verify", json={"code": setup["backup_codes"][0]}, headers=bearer(token))

    assert by_totp.json()["method"] == "totp"
    assert by_backup.json() == {"verified": True, "method": "backup_code", "remaining_backup_codes": 7}
    assert reused.json()["verified"] is False

    regenerated = await client.post(
        "/2fa/backup-codes", json={"current_password": "OldPass123!"}, headers=bearer(token)
    )
    assert len(regenerated.json()["backup_codes"]) == 8
    old_code = await client.post("/2fa/verify", json={"code": setup["backup_codes"][1]}, headers=bearer(token))
    assert old_code.json()["verified"] is False


@pytest.mark.asyncio
async def test_disable_revokes_other_sessions(client, signed_in, login, fetch_one):
    user, token = await signed_in()
    setup = (await client.post("/2fa/setup", headers=bearer(token))).json()
    await client.post(
        "/2fa/verify-setup", json={"code": pyotp.TOTP(setup["secret"]).now()}, headers=bearer(token)
    )
    challenge = await login()
    other = await client.post(
        "/auth/login/2fa",
        json={"two_factor_token": challenge["two_factor_token"], "code": pyotp.TOTP(setup["secret"]).now()},
    )
    other_token = other.json()["session"]["session_token"]

    wrong = await client.post("/2fa/disable", json={"current_password": "Wrong123!"}, headers=bearer(token))
    assert wrong.status_code == 401

    response = await client.post("/2fa/disable", json={"current_password": "OldPass123!"}, headers=bearer(token))

    assert response.json() == {"disabled": True, "revoked_sessions": 1}
    assert (await client.get("/sessions/validate", headers=bearer(token))).status_code == 200
    assert (await client.get("/sessions/validate", headers=bearer(other_token))).status_code == 401

    stored = await fetch_one(select(User).where(User.id == user.id))
    assert stored.two_factor_enabled is False
    assert stored.two_factor_secret_encrypted is None
    assert stored.backup_code_hashes == []

    entry = await fetch_one(
        select(AuditEvent).where(AuditEvent.action == "two_factor_disabled", AuditEvent.success == True)
    )
    assert entry.severity == AuditSeverity.critical
