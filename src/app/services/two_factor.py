"""
Two-factor domain service: TOTP secrets and single-use backup codes.

Stateless helpers used by the 2FA use cases and the 2FA login step.
Nothing here touches storage or commits.
"""

import hashlib
import secrets
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pyotp

from src.app.services.crypto import SecretCipher, timing_safe_equal

BACKUP_CODE_BYTES = 5  # 10 hex characters


@dataclass(frozen=True)
class CodeCheck:
    verified: bool
    method: Optional[str] = None  # "totp" | "backup_code"
    remaining_backup_code_hashes: Optional[List[str]] = None


def normalize_backup_code(code: str) -> str:
    return code.replace("-", "").replace(" ", "").strip().upper()


def hash_backup_code(code: str) -> str:
    return hashlib.sha256(normalize_backup_code(code).encode("utf-8")).hexdigest()


class TwoFactorService:
    def __init__(
        self,
        cipher: SecretCipher,
        issuer: str = "Account Security",
        valid_window: int = 1,
        backup_code_count: int = 8,
    ):
        self.cipher = cipher
        self.issuer = issuer
        self.valid_window = valid_window
        self.backup_code_count = backup_code_count

    def generate_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, account_name: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=account_name, issuer_name=self.issuer)

    def generate_backup_codes(self) -> Tuple[List[str], List[str]]:
        """Returns (plaintext codes shown once, hashes to store)."""
        codes = []
        for _ in range(self.backup_code_count):
            raw = secrets.token_hex(BACKUP_CODE_BYTES).upper()
            codes.append(f"{raw[:5]}-{raw[5:]}")
        return codes, [hash_backup_code(code) for code in codes]

    def encrypt_secret(self, secret: str) -> str:
        return self.cipher.encrypt(secret)

    def verify_totp(self, secret_encrypted: str, code: str) -> bool:
        code = (code or "").strip().replace(" ", "")
        if not code.isdigit():
            return False
        secret = self.cipher.decrypt(secret_encrypted)
        return pyotp.TOTP(secret).verify(code, valid_window=self.valid_window)

    def match_backup_code(self, stored_hashes: Sequence[str], code: str) -> Optional[str]:
        """
        Return the matching stored hash, or None.

        Every stored hash is compared so the time taken does not reveal
        which position matched.
        """
        if not code:
            return None
        candidate = hash_backup_code(code)
        matched = None
        for stored in stored_hashes:
            if timing_safe_equal(candidate, stored) and matched is None:
                matched = stored
        return matched

    def check_code(
        self, secret_encrypted: str, backup_code_hashes: Sequence[str], code: str
    ) -> CodeCheck:
        """TOTP first, then backup codes. A matched backup code is removed from the returned list."""
        if self.verify_totp(secret_encrypted, code):
            return CodeCheck(True, "totp", list(backup_code_hashes))

        matched = self.match_backup_code(backup_code_hashes, code)
        if matched is None:
            return CodeCheck(False)

        remaining = [h for h in backup_code_hashes if h != matched]
        return CodeCheck(True, "backup_code", remaining)
