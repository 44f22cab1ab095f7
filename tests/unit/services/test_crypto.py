import pytest

from src.app.services.crypto import (
    RecordSigner,
    SecretCipher,
    SecretDecryptionError,
    generate_secure_token,
    hash_token,
    is_valid_token_format,
    sanitize_user_agent,
    timing_safe_equal,
    token_hash_prefix,
)


def test_reset_token_is_url_safe_and_long():
    token = generate_secure_token()

    assert len(token) == 86
    assert is_valid_token_format(token)


def test_tokens_are_unique():
    assert len({generate_secure_token() for _ in range(100)}) == 100


def test_hash_token_is_sha256_hex():
    digest = hash_token("abc")

    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert token_hash_prefix(digest) == "ba7816bf"


@pytest.mark.parametrize(
    "token",
    ["", "short", "a" * 79, "a" * 101, "a" * 85 + "!"],
)
def test_invalid_token_format(token):
    assert is_valid_token_format(token) is False


def test_timing_safe_equal():
    assert timing_safe_equal("abc", "abc")
    assert not timing_safe_equal("abc", "abd")
    assert not timing_safe_equal("abc", None)


def test_sanitize_user_agent():
    assert sanitize_user_agent("<script>'x'</script>") == "scriptx/script"
    assert sanitize_user_agent("a" * 600) == "a" * 500
    assert sanitize_user_agent(None) is None
    assert sanitize_user_agent("<>") is None


def test_secret_cipher_round_trip():
    cipher = SecretCipher("key-one")

    ciphertext = cipher.encrypt("JBSWY3DPEHPK3PXP")

    assert ciphertext != "JBSWY3DPEHPK3PXP"
    assert cipher.decrypt(ciphertext) == "JBSWY3DPEHPK3PXP"


def test_secret_cipher_wrong_key():
    ciphertext = SecretCipher("key-one").encrypt("JBSWY3DPEHPK3PXP")

    with pytest.raises(SecretDecryptionError):
        SecretCipher("key-two").decrypt(ciphertext)


def test_record_signer_ignores_key_order():
    signer = RecordSigner("app-secret")

    checksum = signer.sign({"action": "login", "success": False})

    assert len(checksum) == 64
    assert signer.verify({"success": False, "action": "login"}, checksum)
    assert not signer.verify({"action": "login", "success": True}, checksum)
    assert not signer.verify({"action": "login", "success": False}, None)


def test_record_signer_depends_on_secret_and_purpose():
    fields = {"action": "login"}

    assert RecordSigner("app-secret").sign(fields) != RecordSigner("other-secret").sign(fields)
    assert RecordSigner("app-secret").sign(fields) != RecordSigner("app-secret", purpose="other").sign(fields)
