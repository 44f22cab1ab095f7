"""
Crypto primitives for tokens and secrets at rest.

Pure functions: no I/O, no logging. Plaintext tokens leave this module only
as return values; callers persist ``hash_token(...)`` instead.
"""

import base64
import hashlib
import hmac
import json
import re
import secrets
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

RESET_TOKEN_BYTES = 64  # 512 bits
SESSION_TOKEN_BYTES = 32  # 256 bits
USER_AGENT_MAX_LENGTH = 500

_RESET_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{80,100}$")
_USER_AGENT_STRIP = re.compile(r"[<>'\"]")


def generate_secure_token(nbytes: int = RESET_TOKEN_BYTES) -> str:
    """URL-safe random token; 64 bytes encode to 86 characters."""
    return secrets.token_urlsafe(nbytes)


def hash_token(secret: str) -> str:
    """SHA-256 hex digest of a token (what gets stored)."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def timing_safe_equal(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def is_valid_token_format(token: Optional[str]) -> bool:
    return bool(token) and _RESET_TOKEN_PATTERN.match(token) is not None


def sanitize_user_agent(user_agent: Optional[str]) -> Optional[str]:
    if not user_agent:
        return None
    cleaned = _USER_AGENT_STRIP.sub("", user_agent).strip()[:USER_AGENT_MAX_LENGTH]
    return cleaned or None


def token_hash_prefix(token_hash: str) -> str:
    """Partial hash safe for audit details."""
    return token_hash[:8]


class SecretDecryptionError(Exception):
    """Stored ciphertext could not be decrypted with the current key"""


class SecretCipher:
    """
    Fernet encryption for TOTP secrets at rest.

    The Fernet key is derived from the application secret, so rotating
    SECRET_KEY makes existing ciphertexts unreadable.
    """

    def __init__(self, secret: str):
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise SecretDecryptionError("Stored secret could not be decrypted") from exc


class RecordSigner:
    """
    HMAC-SHA256 checksums over a record's fields.

    Fields are rendered as canonical JSON (sorted keys, no whitespace) so the
    checksum survives a round trip through the store. The HMAC key is derived
    from the application secret and a purpose label, so it never equals the
    Fernet key derived from the same secret.
    """

    def __init__(self, secret: str, purpose: str = "audit-integrity"):
        self._key = hashlib.sha256(f"{purpose}:{secret}".encode("utf-8")).digest()

    def sign(self, fields: Dict[str, Any]) -> str:
        payload = json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str)
        return hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, fields: Dict[str, Any], checksum: Optional[str]) -> bool:
        return timing_safe_equal(self.sign(fields), checksum)
